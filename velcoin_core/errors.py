"""
Exception hierarchy for the VelCoin wallet core.

Local validation errors (``ValidationError`` subclasses) are raised before
any network call.  Node errors carry the optional human-readable message
returned by the server.
"""

from __future__ import annotations


class WalletError(Exception):
    """Base class for every wallet-core error."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class InvalidKey(WalletError):
    """Private key is not valid hex or is out of range for secp256k1."""


class SigningError(WalletError):
    """The wallet's private key could not be used to produce a signature."""


class ValidationError(WalletError):
    """Transfer intent rejected locally."""


class InvalidRecipient(ValidationError):
    pass


class InvalidAmount(ValidationError):
    pass


class InsufficientFunds(ValidationError):
    pass


class NodeError(WalletError):
    """Failure talking to, or reported by, the remote ledger node."""


class NodeUnreachable(NodeError):
    pass


class NodeRejected(NodeError):
    pass


class WalletStateError(WalletError):
    """Operation is not valid in the store's current state."""


class TransferInProgress(WalletError):
    """A send is already in flight for this session."""
