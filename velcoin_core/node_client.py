"""
HTTP client for the remote VelCoin ledger node.

Built on ``aiohttp``.  Only the two endpoints the wallet depends on:

GET  /balance/<address>   -> {"balance": number} | {"error": str}
POST /transfer            -> {"status": "success", "tx_hash": str}
                             | {"status": ..., "message"/"error": str}

Usage:
    async with NodeClient("https://velcoin.onrender.com") as node:
        balance = await node.get_balance(wallet.address)
        reply = await node.submit_transfer(signed)
"""

from __future__ import annotations

import asyncio
import logging
import math
from decimal import Decimal
from typing import Any

import aiohttp

from velcoin_core.errors import NodeRejected, NodeUnreachable
from velcoin_core.transaction import SignedTransfer

logger = logging.getLogger("velcoin_node")

DEFAULT_NODE_URL = "https://velcoin.onrender.com"
DEFAULT_TIMEOUT = 30.0

UNREACHABLE_MESSAGE = "Could not reach the node"


class NodeClient:
    """Thin aiohttp wrapper around a VelCoin node's REST API."""

    def __init__(self, base_url: str = DEFAULT_NODE_URL, timeout: float = DEFAULT_TIMEOUT,
                 session: aiohttp.ClientSession | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )
            self._owns_session = True
        return self._session

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        session = await self._get_session()
        url = f"{self.base_url}{path}"
        try:
            async with session.request(method, url, **kwargs) as resp:
                # error bodies still carry the node's message
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.warning(f"{method} {path} failed: {exc!r}")
            raise NodeUnreachable(UNREACHABLE_MESSAGE) from exc

    # ── endpoints ────────────────────────────────────────────────

    async def get_balance(self, address: str) -> Decimal | None:
        """
        Balance of *address*, or None when the node cannot be reached or
        does not return a usable number.
        """
        try:
            data = await self._request("GET", f"/balance/{address}")
        except NodeUnreachable:
            return None
        if not isinstance(data, dict):
            return None
        if data.get("error"):
            logger.info(f"Balance lookup for {address} rejected: {data['error']}")
            return None
        balance = data.get("balance")
        if isinstance(balance, bool) or not isinstance(balance, (int, float)):
            return None
        if isinstance(balance, float) and not math.isfinite(balance):
            return None
        return Decimal(repr(balance)) if isinstance(balance, float) else Decimal(balance)

    async def submit_transfer(self, signed: SignedTransfer) -> dict[str, Any]:
        """
        POST a signed transfer and return the node's reply object.

        Raises NodeUnreachable on transport / decode failure and
        NodeRejected if the reply is not a JSON object.
        """
        payload = signed.to_payload()
        logger.info(
            f"Submitting transfer {payload['from']} -> {payload['to']} "
            f"amount={payload['amount']}"
        )
        data = await self._request("POST", "/transfer", json=payload)
        if not isinstance(data, dict):
            raise NodeRejected("Unexpected response from node")
        return data

    # ── lifecycle ────────────────────────────────────────────────

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> NodeClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
