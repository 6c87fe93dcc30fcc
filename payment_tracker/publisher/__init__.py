"""
Publisher package — payment events and their delivery to the downstream consumer.
"""

from payment_tracker.publisher.events import CURRENCY_ETH, PaymentEvent
from payment_tracker.publisher.sinks import HttpPaymentSink, PaymentSink, QueuePaymentSink

__all__ = [
    "CURRENCY_ETH",
    "HttpPaymentSink",
    "PaymentEvent",
    "PaymentSink",
    "QueuePaymentSink",
]
