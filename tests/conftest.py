from __future__ import annotations

import asyncio

import pytest
from eth_abi import decode

from vedelegate.config import ContractAddresses
from vedelegate.context import PoolContext
from vedelegate.errors import LedgerError
from vedelegate.ledger import AccountMeta, CallResult, LedgerClient

ACCOUNT = "0x" + "11" * 20
OTHER_ACCOUNT = "0x" + "22" * 20
POOL = "0x" + "e0" * 20
OTHER_POOL = "0x" + "e1" * 20
ADDRESSES = ContractAddresses(
    b3tr="0x" + "b3" * 20,
    vot3="0x" + "c3" * 20,
    registry="0x" + "aa" * 20,
    votes="0x" + "d0" * 20,
)
TOKEN = 10 ** 18


def _key(contract, method_name, args):
    return (contract.lower(), method_name, tuple(str(a).lower() for a in args))


class FakeLedger(LedgerClient):
    """In-memory ledger: canned read results, one-shot gates to hold a read open."""

    def __init__(self):
        self.reads = {}
        self.gates = {}
        self.code = {}
        self.calls = []
        self.submitted = []
        self.blocks_waited = 0

    def on_read(self, contract, method, *args, decoded=None, reverted=False, error=None):
        self.reads[_key(contract, method.name, args)] = error or CallResult(decoded or {}, reverted)

    def gate(self, contract, method, *args) -> asyncio.Event:
        ev = asyncio.Event()
        self.gates[_key(contract, method.name, args)] = ev
        return ev

    def set_balances(self, owner, primary=0, wrapped=0, converted=0):
        from vedelegate.abi import BALANCE_OF, CONVERTED_B3TR_OF
        self.on_read(ADDRESSES.b3tr, BALANCE_OF, owner, decoded={"balance": primary})
        self.on_read(ADDRESSES.vot3, BALANCE_OF, owner, decoded={"balance": wrapped})
        self.on_read(ADDRESSES.vot3, CONVERTED_B3TR_OF, owner, decoded={"balance": converted})

    async def read(self, contract, method, *args):
        key = _key(contract, method.name, args)
        self.calls.append(key)
        # the result is fixed when the read starts; a gate only delays delivery
        result = self.reads.get(key, LedgerError(f"no canned result for {key}"))
        gate = self.gates.pop(key, None)
        if gate is not None:
            await gate.wait()
        if isinstance(result, Exception):
            raise result
        return result

    async def get_account_meta(self, address):
        return AccountMeta(has_code=self.code.get(address.lower(), False))

    async def submit_clause_batch(self, clauses):
        self.submitted.append(list(clauses))
        return "0x" + "ab" * 32

    async def next_block(self):
        self.blocks_waited += 1
        return {"number": 1}


def decode_call(method, data):
    """Split calldata into the method's argument tuple, checking the selector."""
    raw = bytes.fromhex(data[2:])
    assert raw[:4] == method.selector, f"expected {method.signature}"
    return decode([t for _, t in method.inputs], raw[4:])


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def ctx(ledger):
    return PoolContext(ledger=ledger, addresses=ADDRESSES, account=ACCOUNT)


@pytest.fixture
def fake_signer():
    calls = []

    def sign(domain, types, message):
        calls.append((domain, types, message))
        return "0x" + "5a" * 65

    sign.calls = calls
    return sign
