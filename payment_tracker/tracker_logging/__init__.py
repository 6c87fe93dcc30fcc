"""
Structured logging for the payment tracker (structlog, JSON by default).
"""

from payment_tracker.tracker_logging.logger import configure_logging, get_logger, tracking_context

__all__ = ["configure_logging", "get_logger", "tracking_context"]
