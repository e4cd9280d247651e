"""Explicit collaborators threaded through the toolkit instead of globals."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from .authorization import DOMAIN_NAME, SignCallback
from .config import ContractAddresses
from .ledger import LedgerClient

AccountListener = Callable[[Optional[str]], None]


class StaticAccountProvider:
    """Connected-account provider fed by the embedding application."""

    def __init__(self, account: Optional[str] = None):
        self.account = account
        self._listeners: List[AccountListener] = []

    def subscribe(self, listener: AccountListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def set_account(self, account: Optional[str]) -> None:
        if account == self.account:
            return
        self.account = account
        for listener in list(self._listeners):
            listener(account)


@dataclass
class PoolContext:
    ledger: LedgerClient
    addresses: ContractAddresses
    account: Optional[str] = None
    # default signing capability; None means owner-executes clauses
    sign: Optional[SignCallback] = None
    app_name: str = DOMAIN_NAME
