import asyncio

import pytest
from web3 import Web3

from conftest import ACCOUNT, ADDRESSES, POOL, TOKEN, decode_call
from vedelegate.abi import (
    APPROVE, CAST_VOTES, CONVERT_TO_B3TR, CONVERT_TO_VOT3, CREATE_POOL, EXECUTE,
    EXECUTE_WITH_AUTHORIZATION, TRANSFER,
)
from vedelegate.errors import PoolNotReadyError, VoteValidationError
from vedelegate.flows import build_deposit_clauses, build_support_clauses, build_withdraw_clauses
from vedelegate.resolver import PoolIdentity

IDENTITY = PoolIdentity(token_id="77", address=POOL, has_pool=True, chain_id="39")
RECIPIENT = "0x" + "99" * 20
APP_A = "0x" + "0a" * 32
APP_B = "0x" + "0b" * 32


def unwrap(clause):
    """Target and calldata of an execute() clause."""
    assert clause.to == POOL
    to, _, data, _ = decode_call(EXECUTE, clause.data)
    return to.lower(), "0x" + data.hex()


def deployed(ledger):
    ledger.code[POOL.lower()] = True


def test_nothing_to_deposit_on_deployed_pool(ledger, ctx):
    deployed(ledger)
    assert asyncio.run(build_deposit_clauses(ctx, IDENTITY, 0, 0)) == []


def test_first_deposit_creates_pool_then_transfers(ledger, ctx):
    identity = PoolIdentity(token_id=str(int(ACCOUNT, 16)), address=POOL, has_pool=False)
    clauses = asyncio.run(build_deposit_clauses(ctx, identity, 0, 3 * TOKEN))

    assert len(clauses) == 2
    create, transfer = clauses
    assert create.to == ADDRESSES.registry
    token_id, to, uri = decode_call(CREATE_POOL, create.data)
    assert token_id == int(ACCOUNT, 16)
    assert to.lower() == ACCOUNT
    assert uri == ""

    assert transfer.to == ADDRESSES.vot3
    recipient, amount = decode_call(TRANSFER, transfer.data)
    assert recipient.lower() == POOL
    assert amount == 3 * TOKEN


def test_primary_deposit_transfers_approves_then_converts(ledger, ctx):
    deployed(ledger)
    clauses = asyncio.run(build_deposit_clauses(ctx, IDENTITY, 5 * TOKEN, 0))
    assert len(clauses) == 3

    transfer, approve, convert = clauses
    assert transfer.to == ADDRESSES.b3tr
    assert decode_call(TRANSFER, transfer.data)[1] == 5 * TOKEN

    target, data = unwrap(approve)
    assert target == ADDRESSES.b3tr
    spender, amount = decode_call(APPROVE, data)
    assert spender.lower() == ADDRESSES.vot3
    assert amount == 5 * TOKEN

    target, data = unwrap(convert)
    assert target == ADDRESSES.vot3
    assert decode_call(CONVERT_TO_VOT3, data) == (5 * TOKEN,)


def test_full_deposit_order(ledger, ctx):
    clauses = asyncio.run(build_deposit_clauses(ctx, IDENTITY, 1, 2))
    assert [c.to for c in clauses] == [ADDRESSES.registry, ADDRESSES.vot3, ADDRESSES.b3tr, POOL, POOL]


def test_deposit_signed_wraps_pool_side_only(ledger, ctx, fake_signer):
    deployed(ledger)
    clauses = asyncio.run(build_deposit_clauses(ctx, IDENTITY, TOKEN, TOKEN, sign=fake_signer))
    # vot3 transfer and b3tr transfer are sent by the account itself
    assert decode_call(TRANSFER, clauses[0].data)[1] == TOKEN
    assert decode_call(TRANSFER, clauses[1].data)[1] == TOKEN
    decode_call(EXECUTE_WITH_AUTHORIZATION, clauses[2].data)
    decode_call(EXECUTE_WITH_AUTHORIZATION, clauses[3].data)
    assert len(fake_signer.calls) == 2


def test_context_signer_is_the_default(ledger, ctx, fake_signer):
    deployed(ledger)
    ctx.sign = fake_signer
    clauses = asyncio.run(build_deposit_clauses(ctx, IDENTITY, TOKEN, 0))
    decode_call(EXECUTE_WITH_AUTHORIZATION, clauses[1].data)


def test_deposit_needs_pool_address(ctx):
    with pytest.raises(PoolNotReadyError):
        asyncio.run(build_deposit_clauses(ctx, PoolIdentity(), 1, 1))


def test_withdraw_caps_conversion_at_converted_balance(ctx):
    clauses = asyncio.run(build_withdraw_clauses(ctx, IDENTITY, 10 * TOKEN, 0, RECIPIENT,
                                                 converted_primary=4 * TOKEN))
    assert len(clauses) == 2
    target, data = unwrap(clauses[0])
    assert target == ADDRESSES.vot3
    assert decode_call(CONVERT_TO_B3TR, data) == (4 * TOKEN,)

    target, data = unwrap(clauses[1])
    assert target == ADDRESSES.b3tr
    recipient, amount = decode_call(TRANSFER, data)
    assert recipient.lower() == RECIPIENT
    assert amount == 10 * TOKEN


def test_withdraw_converts_requested_amount_when_backed(ctx):
    clauses = asyncio.run(build_withdraw_clauses(ctx, IDENTITY, 2 * TOKEN, 0, RECIPIENT,
                                                 converted_primary=9 * TOKEN))
    _, data = unwrap(clauses[0])
    assert decode_call(CONVERT_TO_B3TR, data) == (2 * TOKEN,)


def test_withdraw_wrapped_first(ctx):
    clauses = asyncio.run(build_withdraw_clauses(ctx, IDENTITY, TOKEN, 7, RECIPIENT,
                                                 converted_primary=TOKEN))
    assert len(clauses) == 3
    target, data = unwrap(clauses[0])
    assert target == ADDRESSES.vot3
    assert decode_call(TRANSFER, data)[1] == 7


def test_withdraw_nothing(ctx):
    assert asyncio.run(build_withdraw_clauses(ctx, IDENTITY, 0, 0, RECIPIENT, 0)) == []


def test_vote_builds_one_clause(ctx):
    clauses = asyncio.run(build_support_clauses(ctx, IDENTITY, [APP_A, APP_B], [60, 40]))
    assert len(clauses) == 1
    target, data = unwrap(clauses[0])
    assert target == ADDRESSES.votes
    app_ids, weights = decode_call(CAST_VOTES, data)
    assert list(app_ids) == [Web3.to_bytes(hexstr=APP_A), Web3.to_bytes(hexstr=APP_B)]
    assert list(weights) == [60, 40]


def test_vote_accepts_short_ids_and_truncates(ctx):
    clauses = asyncio.run(build_support_clauses(ctx, IDENTITY, ["0xA", "0xB"], [60.9, 39.2]))
    assert len(clauses) == 1
    _, data = unwrap(clauses[0])
    assert list(decode_call(CAST_VOTES, data)[1]) == [60, 39]


@pytest.mark.parametrize("app_ids,percentages", [
    ([APP_A, APP_B], [100]),
    ([], []),
    ([APP_A], [150]),
    ([APP_A], [-1]),
    ([APP_A], [float("nan")]),
    ([APP_A], [float("inf")]),
    (["0xzz"], [100]),
    (["0x" + "ab" * 33], [100]),
])
def test_vote_validation(ctx, app_ids, percentages):
    with pytest.raises(VoteValidationError):
        asyncio.run(build_support_clauses(ctx, IDENTITY, app_ids, percentages))
