"""
VelCoin wallet core.

Client-side key management and transfer signing for the VelCoin ledger:
- secp256k1 key-pair generation and private-key import
- Truncated SHA-256 address derivation
- Canonical transfer messages signed with deterministic ECDSA (DER)
- Persisted wallet identity and newest-first transaction history
- Async client for the remote ledger node
"""

__version__ = "1.0.0"
__all__ = [
    "crypto_utils",
    "wallet",
    "transaction",
    "storage",
    "node_client",
    "transfer",
    "session",
    "errors",
    "config",
    "logging_config",
]
