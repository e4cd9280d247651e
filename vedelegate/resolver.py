"""Derive the pool (token-bound account) identity for a connected account.

Resolution is strictly ordered by data dependency:
token id -> pool address -> chain id.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NamedTuple

from .abi import GET_POOL_ADDRESS, TOKEN, TOKEN_OF_OWNER_BY_INDEX
from .config import ContractAddresses

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolIdentity:
    token_id: str = ""
    address: str = ""
    has_pool: bool = False
    chain_id: str = ""

    def to_dict(self) -> dict:
        return {
            "tokenId": self.token_id,
            "address": self.address,
            "hasPool": self.has_pool,
            "chainId": self.chain_id,
        }


class TokenResolution(NamedTuple):
    token_id: str
    has_pool: bool
    # False when the lookup failed for a reason other than a revert
    confirmed: bool


def fallback_token_id(account: str) -> str:
    """Token id a pool for this account would be minted with."""
    return str(int(account, 16))


async def resolve_token_id(ledger, addresses: ContractAddresses, account: str) -> TokenResolution:
    # asking for index 0 directly saves a balanceOf round trip; it reverts when nothing is minted
    try:
        result = await ledger.read(addresses.registry, TOKEN_OF_OWNER_BY_INDEX, account, 0)
    except Exception as e:
        log.warning("token lookup for %s failed, assuming no pool: %s", account, e)
        return TokenResolution(fallback_token_id(account), False, False)

    if result.reverted:
        return TokenResolution(fallback_token_id(account), False, True)
    return TokenResolution(str(result.decoded["tokenId"]), True, True)


async def resolve_pool_address(ledger, addresses: ContractAddresses, token_id: str) -> str:
    """Pool address for token_id; defined even before the token is minted."""
    if not token_id:
        return ""
    try:
        result = await ledger.read(addresses.registry, GET_POOL_ADDRESS, token_id)
    except Exception:
        log.exception("getPoolAddress(%s) failed", token_id)
        return ""
    if result.reverted:
        log.error("getPoolAddress(%s) reverted", token_id)
        return ""
    return str(result.decoded["tbaAddress"])


async def resolve_chain_id(ledger, pool_address: str) -> str:
    if not pool_address:
        return ""
    try:
        result = await ledger.read(pool_address, TOKEN)
    except Exception as e:
        log.warning("chain id lookup on %s failed: %s", pool_address, e)
        return ""
    if result.reverted:
        return ""
    return str(result.decoded["chainId"])
