"""Ordered clause lists for deposit, withdraw and vote.

Nothing here submits; callers hand the list to the ledger client as one
atomic batch. Clause order matters: later clauses depend on earlier ones.
"""
from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from web3 import Web3

from .abi import (
    APPROVE, CAST_VOTES, CONVERT_TO_B3TR, CONVERT_TO_VOT3, CREATE_POOL, TRANSFER,
)
from .authorization import SignCallback
from .clauses import Clause, execute_on_account
from .context import PoolContext
from .errors import PoolNotReadyError, VoteValidationError
from .resolver import PoolIdentity

log = logging.getLogger(__name__)


def _require_pool(identity: PoolIdentity) -> None:
    if not identity.address:
        raise PoolNotReadyError("pool address is not resolved")


async def _as_pool(ctx: PoolContext, identity: PoolIdentity, to: str, data: str,
                   sign: Optional[SignCallback]) -> Clause:
    return await execute_on_account(
        ctx.ledger, identity.address, to, 0, data,
        sign=sign if sign is not None else ctx.sign,
        chain_id=identity.chain_id, app_name=ctx.app_name,
    )


async def build_deposit_clauses(ctx: PoolContext, identity: PoolIdentity, primary: int,
                                wrapped: int, sign: Optional[SignCallback] = None) -> List[Clause]:
    """Move B3TR and VOT3 from the connected account into the pool.

    B3TR is converted to VOT3 inside the pool. When the pool contract is not
    deployed yet a createPool clause goes first, since the transfers target it.
    """
    _require_pool(identity)
    if not ctx.account:
        raise PoolNotReadyError("no connected account")
    ledger, addrs = ctx.ledger, ctx.addresses
    clauses = []

    meta = await ledger.get_account_meta(identity.address)
    if not meta.has_code:
        clauses.append(Clause(
            to=addrs.registry, value=0,
            data=ledger.encode_call(addrs.registry, CREATE_POOL, identity.token_id, ctx.account, ""),
        ))

    if wrapped > 0:
        clauses.append(Clause(
            to=addrs.vot3, value=0,
            data=ledger.encode_call(addrs.vot3, TRANSFER, identity.address, wrapped),
        ))

    if primary > 0:
        clauses.append(Clause(
            to=addrs.b3tr, value=0,
            data=ledger.encode_call(addrs.b3tr, TRANSFER, identity.address, primary),
        ))
        clauses.append(await _as_pool(
            ctx, identity, addrs.b3tr,
            ledger.encode_call(addrs.b3tr, APPROVE, addrs.vot3, primary), sign,
        ))
        clauses.append(await _as_pool(
            ctx, identity, addrs.vot3,
            ledger.encode_call(addrs.vot3, CONVERT_TO_VOT3, primary), sign,
        ))

    log.debug("deposit b3tr=%s vot3=%s -> %d clauses", primary, wrapped, len(clauses))
    return clauses


async def build_withdraw_clauses(ctx: PoolContext, identity: PoolIdentity, primary: int,
                                 wrapped: int, recipient: str, converted_primary: int,
                                 sign: Optional[SignCallback] = None) -> List[Clause]:
    """Send VOT3 and B3TR from the pool to recipient.

    B3TR comes out of the pool by converting VOT3 back first; the conversion
    is capped at converted_primary, the amount actually backed by B3TR.
    """
    _require_pool(identity)
    ledger, addrs = ctx.ledger, ctx.addresses
    clauses = []

    if wrapped > 0:
        clauses.append(await _as_pool(
            ctx, identity, addrs.vot3,
            ledger.encode_call(addrs.vot3, TRANSFER, recipient, wrapped), sign,
        ))

    if primary > 0:
        convert_amount = min(primary, converted_primary)
        clauses.append(await _as_pool(
            ctx, identity, addrs.vot3,
            ledger.encode_call(addrs.vot3, CONVERT_TO_B3TR, convert_amount), sign,
        ))
        clauses.append(await _as_pool(
            ctx, identity, addrs.b3tr,
            ledger.encode_call(addrs.b3tr, TRANSFER, recipient, primary), sign,
        ))

    log.debug("withdraw b3tr=%s vot3=%s to %s -> %d clauses", primary, wrapped, recipient, len(clauses))
    return clauses


def validate_votes(app_ids: Sequence[str], percentages: Sequence[float]) -> List[int]:
    if len(app_ids) != len(percentages) or len(app_ids) == 0:
        raise VoteValidationError(
            "Invalid input: appIds and percentages must be non-empty arrays of the same length")
    for app_id in app_ids:
        try:
            raw = Web3.to_bytes(hexstr=app_id)
        except (TypeError, ValueError):
            raise VoteValidationError(f"App id {app_id!r} is not hex")
        if len(raw) > 32:
            raise VoteValidationError(f"App id {app_id!r} is longer than 32 bytes")
    out = []
    for p in percentages:
        if not math.isfinite(p) or p < 0 or p > 100:
            raise VoteValidationError("Percentages must be between 0 and 100")
        out.append(int(p))
    return out


async def build_support_clauses(ctx: PoolContext, identity: PoolIdentity, app_ids: Sequence[str],
                                percentages: Sequence[float],
                                sign: Optional[SignCallback] = None) -> List[Clause]:
    """Cast the pool's votes. Never calling this splits votes equally over all apps."""
    weights = validate_votes(app_ids, percentages)
    _require_pool(identity)
    ledger, addrs = ctx.ledger, ctx.addresses
    clause = await _as_pool(
        ctx, identity, addrs.votes,
        ledger.encode_call(addrs.votes, CAST_VOTES, list(app_ids), weights), sign,
    )
    return [clause]
