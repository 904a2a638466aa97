#!/usr/bin/env python3
"""
VelCoin wallet command-line runner.

Usage:
    python run_wallet.py create
    python run_wallet.py import <private_key_hex> <address>
    python run_wallet.py show
    python run_wallet.py balance
    python run_wallet.py send <recipient> <amount>
    python run_wallet.py history
    python run_wallet.py clear-history
    python run_wallet.py logout
    python run_wallet.py export <backup.json>
    python run_wallet.py restore <backup.json>

Environment variables (alternative to --config):
    VELCOIN_NODE_URL, VELCOIN_DB_PATH, VELCOIN_LOG_LEVEL, VELCOIN_LOG_FMT
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import getpass
import json
import os
import sys
from datetime import datetime

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from velcoin_core.config import VelcoinConfig, load_config  # noqa: E402
from velcoin_core.errors import InvalidKey  # noqa: E402
from velcoin_core.logging_config import setup_logging  # noqa: E402
from velcoin_core.node_client import NodeClient  # noqa: E402
from velcoin_core.session import WalletSession  # noqa: E402
from velcoin_core.storage import MemoryBackend, SQLiteBackend, WalletStore  # noqa: E402
from velcoin_core.transaction import format_amount  # noqa: E402
from velcoin_core.wallet import Wallet  # noqa: E402


def open_store(cfg: VelcoinConfig) -> WalletStore:
    if cfg.storage.backend == "memory":
        return WalletStore(MemoryBackend())
    return WalletStore(SQLiteBackend(cfg.storage.path))


def _require_wallet(session: WalletSession) -> Wallet | None:
    if session.wallet is None:
        print("  No wallet. Run 'create' or 'import' first.")
    return session.wallet


async def run_command(args: argparse.Namespace, session: WalletSession) -> int:
    cmd = args.command

    if cmd == "create":
        wallet = session.create_wallet()
        print(f"  Address:     {wallet.address}")
        print(f"  Public key:  {wallet.public_key}")
        print(f"  Private key: {wallet.private_key}")
        print("  Keep the private key secret; it is the only way to recover this wallet.")
        return 0

    if cmd == "import":
        if not session.import_wallet(args.private_key, args.address):
            print("  Invalid private key.")
            return 1
        print(f"  Imported {session.wallet.address}")
        return 0

    if cmd == "show":
        wallet = _require_wallet(session)
        if wallet is None:
            return 1
        print(f"  Address:    {wallet.address}")
        print(f"  Public key: {wallet.public_key}")
        return 0

    if cmd == "balance":
        if _require_wallet(session) is None:
            return 1
        balance = await session.fetch_balance()
        if balance is None:
            print("  Balance unavailable.")
            return 1
        print(f"  Balance: {format_amount(balance)} VLC")
        return 0

    if cmd == "send":
        if _require_wallet(session) is None:
            return 1
        await session.fetch_balance()
        result = await session.send(args.recipient, args.amount)
        if result.success:
            print(f"  Sent. tx_hash: {result.tx_hash}")
            return 0
        print(f"  Failed: {result.message}")
        return 1

    if cmd == "history":
        history = session.history
        if not history:
            print("  No transactions.")
        for entry in history:
            when = datetime.fromtimestamp(entry.timestamp).strftime("%Y-%m-%d %H:%M:%S")
            print(f"  {when}  {format_amount(entry.amount):>14} VLC -> {entry.to_address}  "
                  f"{entry.tx_hash}")
        return 0

    if cmd == "clear-history":
        session.clear_history()
        print("  History cleared.")
        return 0

    if cmd == "logout":
        session.logout()
        print("  Logged out.")
        return 0

    if cmd == "export":
        wallet = _require_wallet(session)
        if wallet is None:
            return 1
        passphrase = getpass.getpass("Backup passphrase: ")
        with open(args.file, "w") as f:
            json.dump(wallet.export_encrypted(passphrase), f, indent=2)
        print(f"  Encrypted backup written to {args.file}")
        return 0

    if cmd == "restore":
        passphrase = getpass.getpass("Backup passphrase: ")
        try:
            with open(args.file) as f:
                data = json.load(f)
            wallet = Wallet.import_encrypted(data, passphrase)
        except (OSError, ValueError, InvalidKey) as e:
            print(f"  Restore failed: {e}")
            return 1
        session.store.set_wallet(wallet)
        print(f"  Restored {wallet.address}")
        return 0

    print(f"  Unknown command: {cmd}")
    return 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="VelCoin Wallet")
    p.add_argument("--config", default=None, help="Path to velcoin.toml config file")
    p.add_argument("--node-url", default=None, help="Override the node URL")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("create", help="Generate a new wallet")
    imp = sub.add_parser("import", help="Import a wallet from its private key")
    imp.add_argument("private_key")
    imp.add_argument("address")
    sub.add_parser("show", help="Show the active wallet")
    sub.add_parser("balance", help="Fetch the balance from the node")
    send = sub.add_parser("send", help="Send VLC")
    send.add_argument("recipient")
    send.add_argument("amount")
    sub.add_parser("history", help="List sent transactions")
    sub.add_parser("clear-history", help="Delete the local history")
    sub.add_parser("logout", help="Forget the active wallet")
    exp = sub.add_parser("export", help="Write an encrypted backup")
    exp.add_argument("file")
    res = sub.add_parser("restore", help="Restore from an encrypted backup")
    res.add_argument("file")
    return p.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    cfg = load_config(args.config)
    if args.node_url:
        cfg.node.url = args.node_url
    setup_logging(cfg.logging.level, cfg.logging.format, cfg.logging.file)

    store = open_store(cfg)
    async with NodeClient(cfg.node.url, timeout=cfg.node.timeout) as node:
        session = WalletSession(store, node)
        return await run_command(args, session)


def main_sync() -> None:
    """Synchronous entry point for console_scripts."""
    code = 1
    with contextlib.suppress(KeyboardInterrupt):
        code = asyncio.run(main())
    sys.exit(code)


if __name__ == "__main__":
    main_sync()
