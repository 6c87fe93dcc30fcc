"""
Ethereum reader package.

Reads chain height, block metadata, and value transfers from an Ethereum node
via JSON-RPC, normalizing raw payloads into BlockInfo / PaymentCandidate.
"""

from payment_tracker.eth_reader.models import BlockInfo, PaymentCandidate
from payment_tracker.eth_reader.reader import BlockchainReader, EthereumRpcReader

__all__ = [
    "BlockInfo",
    "BlockchainReader",
    "EthereumRpcReader",
    "PaymentCandidate",
]
