"""
Shared pytest fixtures for the VelCoin wallet test suite.
"""

import pytest

from velcoin_core.storage import MemoryBackend, WalletStore
from velcoin_core.wallet import Wallet


class FakeNode:
    """In-memory stand-in for NodeClient: records submissions, replays a reply."""

    def __init__(self, reply=None, balance=None, exc=None):
        self.reply = reply if reply is not None else {"status": "success", "tx_hash": "tx-1"}
        self.balance = balance
        self.exc = exc
        self.submitted = []
        self.balance_calls = 0

    async def submit_transfer(self, signed):
        self.submitted.append(signed)
        if self.exc is not None:
            raise self.exc
        return self.reply

    async def get_balance(self, address):
        self.balance_calls += 1
        return self.balance


@pytest.fixture
def backend():
    """Empty in-memory key-value backend."""
    return MemoryBackend()


@pytest.fixture
def store(backend):
    """Logged-out WalletStore over the in-memory backend."""
    return WalletStore(backend)


@pytest.fixture
def wallet():
    """Fresh wallet."""
    return Wallet.create()


@pytest.fixture
def make_node():
    """Factory for FakeNode instances."""
    return FakeNode
