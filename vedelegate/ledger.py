"""Ledger client interface and a VeChainThor REST implementation."""
from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence

import requests
import websockets

from .abi import Method
from .clauses import Clause
from .errors import LedgerError

log = logging.getLogger(__name__)


class CallResult(NamedTuple):
    decoded: Dict[str, Any]
    reverted: bool


class AccountMeta(NamedTuple):
    has_code: bool


class LedgerClient:
    """What the pool toolkit needs from a ledger: reads, code lookups, encoding, submission."""

    async def read(self, contract: str, method: Method, *args) -> CallResult:
        raise NotImplementedError

    async def get_account_meta(self, address: str) -> AccountMeta:
        raise NotImplementedError

    def encode_call(self, contract: str, method: Method, *args) -> str:
        return method.encode(*args)

    async def submit_clause_batch(self, clauses: Sequence[Clause]) -> str:
        raise NotImplementedError


# Produces a signed raw transaction (0x-hex) for a clause batch.
TxSigner = Callable[[Sequence[Clause]], Any]


class ThorClient(LedgerClient):
    def __init__(self, node_url: str, timeout: float = 10.0,
                 tx_signer: Optional[TxSigner] = None,
                 session: Optional[requests.Session] = None):
        self.node_url = node_url.rstrip("/")
        self.timeout = timeout
        self.tx_signer = tx_signer
        self.session = session or requests.Session()

    def _request(self, verb: str, path: str, payload=None):
        url = f"{self.node_url}{path}"
        try:
            if verb == "GET":
                resp = self.session.get(url, timeout=self.timeout)
            else:
                resp = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise LedgerError(f"{verb} {url} failed: {e}") from e
        if resp.status_code != 200:
            raise LedgerError(f"{verb} {url} returned HTTP {resp.status_code}: {resp.text[:200]}")
        try:
            return resp.json()
        except ValueError as e:
            raise LedgerError(f"{verb} {url} returned invalid JSON") from e

    async def read(self, contract: str, method: Method, *args) -> CallResult:
        data = self.encode_call(contract, method, *args)
        payload = {"clauses": [{"to": contract, "value": "0x0", "data": data}]}
        results = await asyncio.to_thread(self._request, "POST", "/accounts/*", payload)
        if not isinstance(results, list) or not results:
            raise LedgerError(f"empty simulation result for {method.signature}")
        out = results[0]
        if out.get("reverted"):
            log.debug("%s on %s reverted: %s", method.signature, contract, out.get("vmError"))
            return CallResult({}, True)
        try:
            return CallResult(method.decode(out.get("data") or "0x"), False)
        except Exception as e:
            raise LedgerError(f"cannot decode {method.signature} result: {e}") from e

    async def get_account_meta(self, address: str) -> AccountMeta:
        body = await asyncio.to_thread(self._request, "GET", f"/accounts/{address}")
        return AccountMeta(has_code=bool(body.get("hasCode")))

    async def submit_clause_batch(self, clauses: Sequence[Clause]) -> str:
        if self.tx_signer is None:
            raise LedgerError("no transaction signer configured; cannot submit clauses")
        raw = self.tx_signer(list(clauses))
        if inspect.isawaitable(raw):
            raw = await raw
        body = await asyncio.to_thread(self._request, "POST", "/transactions", {"raw": raw})
        tx_id = body.get("id")
        if not tx_id:
            raise LedgerError(f"node did not return a transaction id: {body}")
        log.info("submitted %d clauses as %s", len(clauses), tx_id)
        return tx_id

    async def next_block(self) -> Dict[str, Any]:
        """Wait for the next block announced on the node's websocket."""
        ws_url = self.node_url.replace("https://", "wss://", 1).replace("http://", "ws://", 1)
        async with websockets.connect(f"{ws_url}/subscriptions/block", ping_interval=30) as ws:
            raw_msg = await ws.recv()
        return json.loads(raw_msg)


def clauses_to_wire(clauses: Sequence[Clause]) -> List[Dict[str, str]]:
    return [c.to_dict() for c in clauses]
