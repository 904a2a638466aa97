"""
Transfer messages, signatures and history records.

The canonical signing message is ``"{from}->{to}:{amount}"``.  The node
rebuilds the same string to verify, so the amount rendering is pinned to
one rule (:func:`format_amount`): plain positional decimal, no exponent,
no grouping, no trailing fractional zeros.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from velcoin_core.crypto_utils import sha256, sign_digest, verify_digest
from velcoin_core.errors import InvalidAmount
from velcoin_core.wallet import Wallet

AmountLike = Union[Decimal, int, float, str]


# ===================================================================
#  Amounts
# ===================================================================

def parse_decimal(amount: AmountLike) -> Decimal:
    """
    Convert *amount* to a finite Decimal.

    Floats go through ``repr()`` so ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.  Raises InvalidAmount for non-numbers
    and non-finite values.
    """
    if isinstance(amount, bool):
        raise InvalidAmount("Amount must be a number")
    if isinstance(amount, float):
        amount = repr(amount)
    if isinstance(amount, str):
        amount = amount.strip()
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Amount {amount!r} is not a number") from None
    if not value.is_finite():
        raise InvalidAmount("Amount must be a finite number")
    return value


def to_decimal(amount: AmountLike) -> Decimal:
    """
    Parse an amount that is about to be signed or sent.

    Like :func:`parse_decimal`, but also raises InvalidAmount when the
    value would change on its way through a JSON float.
    """
    value = parse_decimal(amount)
    # The node rebuilds the message from the JSON number it receives, so
    # only values that survive a float round-trip can be signed.
    as_float = float(value)
    if not math.isfinite(as_float) or Decimal(repr(as_float)) != value:
        raise InvalidAmount(f"Amount {value} cannot be sent without losing precision")
    return value


def format_amount(amount: AmountLike) -> str:
    """Render an amount the way it appears in the signing message."""
    value = parse_decimal(amount)
    if value == 0:
        return "0"
    # normalize() may yield "1E+1"; the "f" format expands it back to "10".
    return format(value.normalize(), "f")


def wire_amount(amount: AmountLike) -> Union[int, float]:
    """JSON number for the ``/transfer`` body: int when integral."""
    value = to_decimal(amount)
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# ===================================================================
#  Records
# ===================================================================

@dataclass(frozen=True)
class TransferIntent:
    from_address: str
    to_address: str
    amount: Decimal

    def message(self) -> str:
        return build_message(self.from_address, self.to_address, self.amount)


@dataclass(frozen=True)
class SignedTransfer:
    """A signed transfer ready for ``POST /transfer``.  Never persisted."""
    intent: TransferIntent
    signature: str
    public_key: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "from": self.intent.from_address,
            "to": self.intent.to_address,
            "amount": wire_amount(self.intent.amount),
            "signature": self.signature,
            "public_key": self.public_key,
        }


@dataclass(frozen=True)
class HistoryEntry:
    """One outgoing transfer acknowledged by the node."""
    tx_hash: str
    from_address: str
    to_address: str
    amount: Decimal
    timestamp: float

    @classmethod
    def from_transfer(cls, intent: TransferIntent, tx_hash: str,
                      timestamp: float | None = None) -> HistoryEntry:
        return cls(
            tx_hash=tx_hash,
            from_address=intent.from_address,
            to_address=intent.to_address,
            amount=intent.amount,
            timestamp=time.time() if timestamp is None else timestamp,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tx_hash": self.tx_hash,
            "from": self.from_address,
            "to": self.to_address,
            "amount": wire_amount(self.amount),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Any) -> HistoryEntry:
        """Raises ValueError unless *data* has every field with the right type."""
        if not isinstance(data, dict):
            raise ValueError("history entry must be an object")
        for name in ("tx_hash", "from", "to"):
            if not isinstance(data.get(name), str):
                raise ValueError(f"history field {name!r} missing or not a string")
        amount = data.get("amount")
        timestamp = data.get("timestamp")
        for name, value in (("amount", amount), ("timestamp", timestamp)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"history field {name!r} missing or not a number")
        try:
            value = to_decimal(amount)
        except InvalidAmount as exc:
            raise ValueError(exc.message) from exc
        return cls(
            tx_hash=data["tx_hash"],
            from_address=data["from"],
            to_address=data["to"],
            amount=value,
            timestamp=float(timestamp),
        )


# ===================================================================
#  Signing
# ===================================================================

def build_message(from_address: str, to_address: str, amount: AmountLike) -> str:
    """The canonical string signed by the wallet and checked by the node."""
    return f"{from_address}->{to_address}:{format_amount(to_decimal(amount))}"


def message_digest(from_address: str, to_address: str, amount: AmountLike) -> bytes:
    return sha256(build_message(from_address, to_address, amount).encode("utf-8"))


def sign_transfer(wallet: Wallet, to_address: str, amount: AmountLike) -> str:
    """
    Sign a transfer from *wallet* to *to_address*.

    Returns the hex DER signature over ``sha256(build_message(...))``.
    Raises SigningError if the wallet's private key is unusable.
    """
    return sign_digest(
        wallet.private_key, message_digest(wallet.address, to_address, amount),
    )


def build_signed_transfer(wallet: Wallet, to_address: str,
                          amount: AmountLike) -> SignedTransfer:
    intent = TransferIntent(wallet.address, to_address, to_decimal(amount))
    signature = sign_transfer(wallet, to_address, intent.amount)
    return SignedTransfer(intent=intent, signature=signature, public_key=wallet.public_key)


def verify_transfer(public_key_hex: str, from_address: str, to_address: str,
                    amount: AmountLike, signature_hex: str) -> bool:
    """Check a transfer signature the way the node does."""
    try:
        digest = message_digest(from_address, to_address, amount)
    except InvalidAmount:
        return False
    return verify_digest(public_key_hex, digest, signature_hex)
