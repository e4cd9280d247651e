"""Keeps pool identity and balances in step with the connected account.

Phases advance by data dependency:

    DISCONNECTED -> RESOLVING_TOKEN -> RESOLVING_ADDRESS -> LOADING -> READY

Every async step captures the account generation (and, for balance loads,
the refetch generation) when it starts. A step that finishes after a newer
generation was issued drops its result instead of overwriting newer state.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from enum import Enum
from typing import List, Optional, Sequence

from . import flows
from .authorization import SignCallback
from .balance import BalanceSnapshot, load_balance
from .clauses import Clause
from .context import PoolContext
from .errors import PoolNotReadyError
from .resolver import PoolIdentity, resolve_chain_id, resolve_pool_address, resolve_token_id

log = logging.getLogger(__name__)


class Phase(str, Enum):
    DISCONNECTED = "disconnected"
    RESOLVING_TOKEN = "resolving_token"
    RESOLVING_ADDRESS = "resolving_address"
    LOADING = "loading"
    READY = "ready"


class PoolCoordinator:
    def __init__(self, ctx: PoolContext):
        self.ctx = ctx
        self.phase = Phase.DISCONNECTED
        self.identity = PoolIdentity()
        self.token_confirmed = True
        self.account_balance = BalanceSnapshot.empty()
        self.balance = BalanceSnapshot.empty()
        self._account_gen = 0
        self._refetch_gen = 0
        self._tasks = set()

    # ---- read-only view ----
    @property
    def account(self) -> Optional[str]:
        return self.ctx.account

    @property
    def has_pool(self) -> bool:
        return self.identity.has_pool

    @property
    def token_id(self) -> str:
        return self.identity.token_id

    @property
    def address(self) -> str:
        return self.identity.address

    @property
    def chain_id(self) -> str:
        return self.identity.chain_id

    def snapshot(self) -> dict:
        return {
            "phase": self.phase.value,
            "account": self.account,
            **self.identity.to_dict(),
            "tokenConfirmed": self.token_confirmed,
            "accountBalance": self.account_balance.to_dict(),
            "balance": self.balance.to_dict(),
        }

    # ---- triggers ----
    def _is_current(self, gen: int, refetch_gen: Optional[int] = None) -> bool:
        if gen != self._account_gen:
            return False
        return refetch_gen is None or refetch_gen == self._refetch_gen

    def _set_phase(self, gen: int, phase: Phase) -> None:
        if self._is_current(gen):
            self.phase = phase

    def _reset(self) -> None:
        self.phase = Phase.DISCONNECTED
        self.identity = PoolIdentity()
        self.token_confirmed = True
        self.account_balance = BalanceSnapshot.empty()
        self.balance = BalanceSnapshot.empty()

    async def set_account(self, account: Optional[str]) -> None:
        """Switch to account (None disconnects) and resolve everything for it."""
        self._account_gen += 1
        gen = self._account_gen
        self.ctx.account = account
        self._reset()
        if not account:
            log.info("account disconnected")
            return

        log.info("account connected: %s", account)
        await asyncio.gather(
            self._load_account_balance(gen, self._refetch_gen, account),
            self._resolve(gen, account),
        )

    async def refetch(self) -> None:
        """Reload balances only; identity is left as resolved."""
        self._refetch_gen += 1
        gen, refetch_gen = self._account_gen, self._refetch_gen
        account = self.ctx.account
        if not account:
            return
        jobs = [self._load_account_balance(gen, refetch_gen, account)]
        if self.identity.address:
            jobs.append(self._load_pool_balance(gen, refetch_gen, self.identity.address))
        await asyncio.gather(*jobs)

    def watch(self, provider):
        """Follow provider's account changes; returns the unsubscribe handle.

        Must be called from inside the running event loop. The provider's
        current account is adopted right away, and listeners may fire from
        other threads.
        """
        loop = asyncio.get_running_loop()

        def schedule(account):
            task = loop.create_task(self.set_account(account))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        def on_change(account):
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is loop:
                schedule(account)
            else:
                loop.call_soon_threadsafe(schedule, account)

        unsubscribe = provider.subscribe(on_change)
        if provider.account or self.ctx.account:
            schedule(provider.account)
        return unsubscribe

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # ---- async steps ----
    async def _resolve(self, gen: int, account: str) -> None:
        ctx = self.ctx
        self._set_phase(gen, Phase.RESOLVING_TOKEN)
        resolution = await resolve_token_id(ctx.ledger, ctx.addresses, account)
        if not self._is_current(gen):
            log.debug("dropping stale token id for %s", account)
            return
        self.identity = replace(self.identity, token_id=resolution.token_id,
                                has_pool=resolution.has_pool)
        self.token_confirmed = resolution.confirmed

        self._set_phase(gen, Phase.RESOLVING_ADDRESS)
        address = await resolve_pool_address(ctx.ledger, ctx.addresses, resolution.token_id)
        if not self._is_current(gen):
            log.debug("dropping stale pool address for %s", account)
            return
        self.identity = replace(self.identity, address=address)
        if not address:
            self._set_phase(gen, Phase.READY)
            return

        self._set_phase(gen, Phase.LOADING)
        await asyncio.gather(
            self._load_chain_id(gen, address),
            self._load_pool_balance(gen, self._refetch_gen, address),
        )
        self._set_phase(gen, Phase.READY)

    async def _load_chain_id(self, gen: int, address: str) -> None:
        chain_id = await resolve_chain_id(self.ctx.ledger, address)
        if self._is_current(gen) and self.identity.address == address:
            self.identity = replace(self.identity, chain_id=chain_id)

    async def _load_account_balance(self, gen: int, refetch_gen: int, account: str) -> None:
        snap = await load_balance(self.ctx.ledger, self.ctx.addresses, account)
        if self._is_current(gen, refetch_gen):
            self.account_balance = snap
        else:
            log.debug("dropping stale account balance for %s", account)

    async def _load_pool_balance(self, gen: int, refetch_gen: int, address: str) -> None:
        snap = await load_balance(self.ctx.ledger, self.ctx.addresses, address)
        if self._is_current(gen, refetch_gen) and self.identity.address == address:
            self.balance = snap
        else:
            log.debug("dropping stale pool balance for %s", address)

    # ---- clause builders ----
    async def build_deposit_clauses(self, primary: int, wrapped: int,
                                    sign: Optional[SignCallback] = None) -> List[Clause]:
        return await flows.build_deposit_clauses(self.ctx, self.identity, primary, wrapped, sign)

    async def build_withdraw_clauses(self, primary: int, wrapped: int, recipient: str,
                                     sign: Optional[SignCallback] = None) -> List[Clause]:
        return await flows.build_withdraw_clauses(
            self.ctx, self.identity, primary, wrapped, recipient,
            self.balance.converted_primary, sign,
        )

    async def build_support_clauses(self, app_ids: Sequence[str], percentages: Sequence[float],
                                    sign: Optional[SignCallback] = None) -> List[Clause]:
        return await flows.build_support_clauses(self.ctx, self.identity, app_ids, percentages, sign)

    async def build_deposit_all_clauses(self, sign: Optional[SignCallback] = None) -> List[Clause]:
        """Everything the connected account holds goes into the pool."""
        bal = self.account_balance
        return await self.build_deposit_clauses(bal.primary, bal.wrapped, sign)

    async def build_withdraw_all_clauses(self, recipient: Optional[str] = None,
                                         sign: Optional[SignCallback] = None) -> List[Clause]:
        recipient = recipient or self.account
        if not recipient:
            raise PoolNotReadyError("no connected account to withdraw to")
        bal = self.balance
        return await self.build_withdraw_clauses(bal.available_primary, bal.available_wrapped,
                                                 recipient, sign)

    async def submit(self, clauses: Sequence[Clause]) -> str:
        """Submit one batch, wait a block when the ledger can, then refetch balances."""
        tx_id = await self.ctx.ledger.submit_clause_batch(clauses)
        next_block = getattr(self.ctx.ledger, "next_block", None)
        if next_block is not None:
            try:
                await next_block()
            except Exception as e:
                log.warning("waiting for next block after %s failed: %s", tx_id, e)
        await self.refetch()
        return tx_id
