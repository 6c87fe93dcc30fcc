"""
Tracking package — the block-range scan engine.
"""

from payment_tracker.tracking.engine import TrackingConfig, TrackingEngine, format_range

__all__ = [
    "TrackingConfig",
    "TrackingEngine",
    "format_range",
]
