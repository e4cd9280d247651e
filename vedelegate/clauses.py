"""Clauses and the dual-mode wrapper that runs an instruction as the pool."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .abi import EXECUTE, EXECUTE_WITH_AUTHORIZATION
from .authorization import DOMAIN_NAME, SignCallback, build_authorization
from .errors import PoolNotReadyError


@dataclass(frozen=True)
class Clause:
    to: str
    value: int
    data: str

    def to_dict(self) -> Dict[str, str]:
        return {"to": self.to, "value": hex(self.value), "data": self.data}


async def execute_on_account(ledger, pool_address: str, to: str, value: int, data: str,
                             operation: int = 0, sign: Optional[SignCallback] = None,
                             chain_id: str = "", app_name: str = DOMAIN_NAME) -> Clause:
    """Wrap (to, value, data) so it executes with the pool as msg.sender.

    Without sign the pool's owner-gated execute() is used and the connected
    account must send the transaction itself. With sign an authorization is
    signed and executeWithAuthorization() is used, so any relayer can submit.
    The signed form has no operation field and always performs a plain call,
    so a non-zero operation is rejected there.
    """
    if not pool_address:
        raise PoolNotReadyError("pool address is not resolved")

    if sign is None:
        payload = ledger.encode_call(pool_address, EXECUTE, to, value, data, operation)
        return Clause(to=pool_address, value=0, data=payload)

    if operation != 0:
        raise ValueError("executeWithAuthorization only supports operation 0 (call)")
    if not chain_id:
        raise PoolNotReadyError("pool chain id is not resolved; cannot sign an authorization")
    envelope = await build_authorization(to, value, data, sign, chain_id=chain_id,
                                         verifying_contract=pool_address, app_name=app_name)
    msg = envelope.message
    payload = ledger.encode_call(
        pool_address, EXECUTE_WITH_AUTHORIZATION,
        msg["to"], msg["value"], msg["data"],
        msg["validAfter"], msg["validBefore"], msg["nonce"],
        envelope.signature,
    )
    return Clause(to=pool_address, value=0, data=payload)
