"""
Send orchestration: validate -> sign -> submit -> build history entry.

``TransferCoordinator.send`` never raises for expected failures; every
outcome comes back as a :class:`TransferResult`.  It does not retry and
does not write to the store: recording the returned entry is the caller's
job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol

from velcoin_core.errors import (
    InsufficientFunds,
    InvalidAmount,
    InvalidRecipient,
    NodeError,
    NodeRejected,
    SigningError,
    WalletError,
)
from velcoin_core.transaction import (
    AmountLike,
    HistoryEntry,
    SignedTransfer,
    build_signed_transfer,
    parse_decimal,
    to_decimal,
)
from velcoin_core.wallet import Wallet

logger = logging.getLogger("velcoin_transfer")


class TransferSubmitter(Protocol):
    async def submit_transfer(self, signed: SignedTransfer) -> dict: ...


@dataclass
class TransferResult:
    success: bool
    entry: Optional[HistoryEntry] = None
    error: Optional[WalletError] = None
    message: str = ""

    @property
    def tx_hash(self) -> str | None:
        return self.entry.tx_hash if self.entry else None

    @classmethod
    def failed(cls, error: WalletError) -> TransferResult:
        return cls(success=False, error=error, message=error.message)


def validate_transfer(to_address: str, amount: AmountLike,
                      current_balance: AmountLike | None) -> tuple[str, Decimal]:
    """
    Local checks, in order: recipient, amount, balance.

    Returns the trimmed recipient and the parsed amount.  Raises
    InvalidRecipient, InvalidAmount or InsufficientFunds.
    """
    recipient = to_address.strip() if isinstance(to_address, str) else ""
    if not recipient:
        raise InvalidRecipient("Recipient address is required")

    value = to_decimal(amount)
    if value <= 0:
        raise InvalidAmount("Amount must be greater than zero")

    if current_balance is None:
        raise InsufficientFunds("Balance is unknown")
    try:
        balance = parse_decimal(current_balance)
    except InvalidAmount:
        raise InsufficientFunds("Balance is unknown") from None
    if value > balance:
        raise InsufficientFunds(f"Insufficient funds: balance {balance}")
    return recipient, value


class TransferCoordinator:
    """Runs one send attempt against the node."""

    def __init__(self, node_client: TransferSubmitter):
        self.node_client = node_client

    async def send(self, wallet: Wallet, to_address: str, amount: AmountLike,
                   current_balance: AmountLike | None) -> TransferResult:
        try:
            recipient, value = validate_transfer(to_address, amount, current_balance)
        except WalletError as exc:
            logger.info(f"Transfer rejected locally: {exc.message}")
            return TransferResult.failed(exc)

        try:
            signed = build_signed_transfer(wallet, recipient, value)
        except SigningError as exc:
            logger.error(f"Signing failed for {wallet.address}: {exc.message}")
            return TransferResult.failed(exc)

        try:
            reply = await self.node_client.submit_transfer(signed)
        except NodeError as exc:
            return TransferResult.failed(exc)

        tx_hash = reply.get("tx_hash")
        if reply.get("status") != "success" or not isinstance(tx_hash, str) or not tx_hash:
            message = reply.get("message") or reply.get("error") or "Transfer rejected by node"
            logger.warning(f"Node rejected transfer: {message}")
            return TransferResult.failed(NodeRejected(str(message)))

        entry = HistoryEntry.from_transfer(signed.intent, tx_hash)
        logger.info(f"Transfer accepted: {tx_hash}")
        return TransferResult(success=True, entry=entry)
