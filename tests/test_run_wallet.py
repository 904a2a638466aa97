"""
Tests for the run_wallet command dispatcher (no real node, in-memory store).
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from run_wallet import open_store, parse_args, run_command
from velcoin_core.config import VelcoinConfig
from velcoin_core.session import WalletSession

KEY_ONE = "0" * 63 + "1"


@pytest.fixture
def session(make_node):
    cfg = VelcoinConfig()
    cfg.storage.backend = "memory"
    return WalletSession(open_store(cfg), make_node(balance=Decimal("50")))


async def _run(session, *argv):
    return await run_command(parse_args(list(argv)), session)


@pytest.mark.asyncio
class TestCommands:
    async def test_create_and_show(self, session, capsys):
        assert await _run(session, "create") == 0
        assert await _run(session, "show") == 0
        assert session.wallet.address in capsys.readouterr().out

    async def test_show_without_wallet(self, session):
        assert await _run(session, "show") == 1

    async def test_import_invalid(self, session):
        assert await _run(session, "import", "nothex", "addr") == 1
        assert session.wallet is None

    async def test_import_then_balance(self, session, capsys):
        assert await _run(session, "import", KEY_ONE, "addr-1") == 0
        assert await _run(session, "balance") == 0
        assert "50 VLC" in capsys.readouterr().out

    async def test_send_and_history(self, session, capsys):
        await _run(session, "create")
        assert await _run(session, "send", "bob", "12.5") == 0
        assert await _run(session, "history") == 0
        out = capsys.readouterr().out
        assert "tx-1" in out
        assert "12.5 VLC -> bob" in out

    async def test_send_over_balance(self, session):
        await _run(session, "create")
        assert await _run(session, "send", "bob", "51") == 1
        assert session.history == []

    async def test_logout_and_clear(self, session):
        await _run(session, "create")
        await _run(session, "send", "bob", "1")
        assert await _run(session, "logout") == 0
        assert session.wallet is None
        assert len(session.history) == 1
        assert await _run(session, "clear-history") == 0
        assert session.history == []

    async def test_export_restore(self, session, tmp_path, monkeypatch):
        monkeypatch.setattr("getpass.getpass", lambda prompt="": "pw")
        await _run(session, "import", KEY_ONE, "addr-1")
        backup = str(tmp_path / "backup.json")
        assert await _run(session, "export", backup) == 0
        await _run(session, "logout")
        assert await _run(session, "restore", backup) == 0
        assert session.wallet.address == "addr-1"

    async def test_restore_wrong_passphrase(self, session, tmp_path, monkeypatch):
        backup = str(tmp_path / "backup.json")
        monkeypatch.setattr("getpass.getpass", lambda prompt="": "pw")
        await _run(session, "create")
        await _run(session, "export", backup)
        await _run(session, "logout")
        monkeypatch.setattr("getpass.getpass", lambda prompt="": "other")
        assert await _run(session, "restore", backup) == 1
        assert session.wallet is None
