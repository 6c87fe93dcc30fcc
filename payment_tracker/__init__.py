"""
Payment Tracker — background job that watches Ethereum for investor payments.

Runs 24/7 to scan confirmed blocks, match value transfers against known
investor pay-in addresses, and forward each payment to a downstream sink.
Progress is checkpointed per block so restarts resume where they left off.
"""

__version__ = "0.1.0"
