"""
Persisted wallet state for VelCoin.

Two string-valued keys in a key-value backend:

    velcoin_wallet   -> {"private_key", "public_key", "address"}
    velcoin_history  -> [{"tx_hash", "from", "to", "amount", "timestamp"}, ...]
                        newest first

``WalletStore`` owns both.  Every mutation is written to the backend
before the in-memory copy changes.  On load, anything that does not parse
into the expected shape is treated as absent.

Usage:
    store = WalletStore(SQLiteBackend("data/velcoin.db"))
    wallet = store.create()
    ...
    store.logout()
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Protocol

from velcoin_core.errors import WalletStateError
from velcoin_core.transaction import HistoryEntry
from velcoin_core.wallet import Wallet

logger = logging.getLogger("velcoin_storage")

WALLET_KEY = "velcoin_wallet"
HISTORY_KEY = "velcoin_history"


# ═══════════════════════════════════════════════════════════════════
#  Key-value backends
# ═══════════════════════════════════════════════════════════════════

class KeyValueBackend(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryBackend:
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class SQLiteBackend:
    """Thin SQLite wrapper holding a single ``kv`` table."""

    def __init__(self, db_path: str = "data/velcoin.db"):
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(db_path)
        self._conn.execute("PRAGMA busy_timeout = 5000")
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS kv (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        self._conn.commit()
        logger.info(f"Storage opened: {db_path}")

    def get(self, key: str) -> str | None:
        row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value),
        )
        self._conn.commit()

    def remove(self, key: str) -> None:
        self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()


# ═══════════════════════════════════════════════════════════════════
#  Wallet store
# ═══════════════════════════════════════════════════════════════════

class WalletStore:
    """
    Durable owner of the active wallet and its transaction history.

    States are *logged out* (no wallet) and *logged in* (one wallet).
    History is stored under its own key and is independent of the wallet:
    ``logout()`` leaves it in place, only ``clear_history()`` empties it.
    """

    def __init__(self, backend: KeyValueBackend):
        self._backend = backend
        self._wallet: Wallet | None = None
        self._history: list[HistoryEntry] = []
        self.reload()

    # ── state ────────────────────────────────────────────────────

    @property
    def wallet(self) -> Wallet | None:
        return self._wallet

    @property
    def logged_in(self) -> bool:
        return self._wallet is not None

    @property
    def history(self) -> list[HistoryEntry]:
        """Newest-first copy of the history."""
        return list(self._history)

    def reload(self) -> None:
        """Re-read both keys from the backend."""
        self._wallet = self._load_wallet()
        self._history = self._load_history()

    def _load_json(self, key: str):
        raw = self._backend.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as exc:
            logger.warning(f"Ignoring unparseable {key}: {exc}")
            return None

    def _load_wallet(self) -> Wallet | None:
        data = self._load_json(WALLET_KEY)
        if data is None:
            return None
        try:
            return Wallet.from_dict(data)
        except ValueError as exc:
            logger.warning(f"Ignoring malformed {WALLET_KEY}: {exc}")
            return None

    def _load_history(self) -> list[HistoryEntry]:
        data = self._load_json(HISTORY_KEY)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning(f"Ignoring malformed {HISTORY_KEY}: not a list")
            return []
        try:
            return [HistoryEntry.from_dict(item) for item in data]
        except ValueError as exc:
            logger.warning(f"Ignoring malformed {HISTORY_KEY}: {exc}")
            return []

    # ── wallet lifecycle ─────────────────────────────────────────

    def set_wallet(self, wallet: Wallet) -> Wallet:
        """Persist *wallet* as the active identity, replacing any previous one."""
        self._backend.set(WALLET_KEY, json.dumps(wallet.to_dict()))
        self._wallet = wallet
        logger.info(f"Active wallet: {wallet.address}")
        return wallet

    def create(self) -> Wallet:
        return self.set_wallet(Wallet.create())

    def import_wallet(self, private_key_hex: str, address: str) -> Wallet:
        """Raises InvalidKey; on failure the current state is untouched."""
        return self.set_wallet(Wallet.from_private_key(private_key_hex, address))

    def logout(self) -> None:
        """Forget the wallet.  Persisted history is intentionally kept."""
        self._backend.remove(WALLET_KEY)
        self._wallet = None
        logger.info("Wallet logged out")

    # ── history ──────────────────────────────────────────────────

    def append_history(self, entry: HistoryEntry) -> None:
        """Prepend *entry* and persist the whole list."""
        if self._wallet is None:
            raise WalletStateError("Cannot record history without an active wallet")
        history = [entry] + self._history
        self._backend.set(HISTORY_KEY, json.dumps([e.to_dict() for e in history]))
        self._history = history

    def clear_history(self) -> None:
        self._backend.remove(HISTORY_KEY)
        self._history = []
