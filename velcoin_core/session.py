"""
Wallet session: the object a front end drives.

Combines the persisted ``WalletStore`` with the node client.  Holds the
last fetched balance (never persisted) and a ``busy`` flag that allows
at most one send in flight.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from velcoin_core.errors import InvalidKey, TransferInProgress, WalletStateError
from velcoin_core.node_client import NodeClient
from velcoin_core.storage import WalletStore
from velcoin_core.transaction import AmountLike, HistoryEntry
from velcoin_core.transfer import TransferCoordinator, TransferResult
from velcoin_core.wallet import Wallet

logger = logging.getLogger("velcoin_session")


class WalletSession:

    def __init__(self, store: WalletStore, node_client: NodeClient):
        self.store = store
        self.node_client = node_client
        self.coordinator = TransferCoordinator(node_client)
        self.balance: Decimal | None = None
        self.busy = False

    @property
    def wallet(self) -> Wallet | None:
        return self.store.wallet

    @property
    def history(self) -> list[HistoryEntry]:
        return self.store.history

    # ---- identity ----

    def create_wallet(self) -> Wallet:
        self.balance = None
        return self.store.create()

    def import_wallet(self, private_key_hex: str, address: str) -> bool:
        try:
            self.store.import_wallet(private_key_hex, address)
        except InvalidKey as exc:
            logger.warning(f"Import failed: {exc.message}")
            return False
        self.balance = None
        return True

    def logout(self) -> None:
        self.store.logout()
        self.balance = None

    def clear_history(self) -> None:
        self.store.clear_history()

    # ---- node ----

    async def fetch_balance(self) -> Decimal | None:
        wallet = self.store.wallet
        if wallet is None:
            return None
        self.balance = await self.node_client.get_balance(wallet.address)
        return self.balance

    async def send(self, to_address: str, amount: AmountLike) -> TransferResult:
        """
        Send from the active wallet using the last fetched balance.

        A second call while one is pending fails immediately with
        TransferInProgress.  A transfer the node accepted is reported as a
        success even if the wallet was logged out before it could be
        recorded in history.
        """
        wallet = self.store.wallet
        if wallet is None:
            return TransferResult.failed(WalletStateError("No wallet connected"))
        if self.busy:
            return TransferResult.failed(TransferInProgress("A transfer is already pending"))

        self.busy = True
        try:
            result = await self.coordinator.send(wallet, to_address, amount, self.balance)
        finally:
            self.busy = False

        if result.success and result.entry is not None:
            try:
                self.store.append_history(result.entry)
            except WalletStateError as exc:
                logger.warning(f"Transfer {result.tx_hash} not recorded: {exc.message}")
        return result
