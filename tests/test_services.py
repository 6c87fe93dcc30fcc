"""
Tests for build_services wiring: sink selection and resource release.
"""

from __future__ import annotations

import pytest

from payment_tracker.api_server.services import build_services
from payment_tracker.config import Settings
from payment_tracker.core.exceptions import ConfigError
from payment_tracker.publisher import HttpPaymentSink, QueuePaymentSink


def _settings(tmp_path, **overrides) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'services.db'}",
        require_investor=False,
        **overrides,
    )


def test_missing_sink_url_refuses_to_build(tmp_path):
    with pytest.raises(ConfigError, match="PAYMENT_SINK_URL"):
        build_services(_settings(tmp_path))
    # nothing was created before the check
    assert not (tmp_path / "services.db").exists()


async def test_sink_url_builds_webhook_sink(tmp_path):
    services = build_services(_settings(tmp_path, payment_sink_url="http://consumer.local/payments"))
    try:
        assert any(isinstance(r, HttpPaymentSink) for r in services.resources)
        assert services.runner is not None
    finally:
        await services.aclose()
    assert services.resources == []


async def test_embedder_supplies_own_sink(tmp_path):
    sink = QueuePaymentSink()
    services = build_services(_settings(tmp_path), sink=sink)
    try:
        assert sink in services.resources
        assert not any(isinstance(r, HttpPaymentSink) for r in services.resources)
    finally:
        await services.aclose()


def test_cli_exits_with_config_error_without_sink_url(tmp_path, monkeypatch):
    from main import main
    from payment_tracker.config import reset_settings_cache

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.delenv("PAYMENT_SINK_URL", raising=False)
    reset_settings_cache()
    try:
        assert main(["track-once"]) == 2
    finally:
        reset_settings_cache()
