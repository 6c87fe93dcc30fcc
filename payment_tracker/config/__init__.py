"""
Configuration management for the payment tracker.

Loads and validates settings from environment variables and the optional
.env file. Exposes a single source of truth for all job configuration.
"""

from payment_tracker.config.settings import Settings, get_settings, reset_settings_cache  # noqa: F401

__all__ = ["Settings", "get_settings", "reset_settings_cache"]
