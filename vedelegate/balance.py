"""B3TR / VOT3 balance view for a single address."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .abi import BALANCE_OF, CONVERTED_B3TR_OF
from .config import ContractAddresses
from .errors import CallReverted

log = logging.getLogger(__name__)

DECIMALS = 18
_UNIT = 10 ** DECIMALS


def to_display(raw: int) -> int:
    """Whole tokens, truncated toward zero."""
    if raw < 0:
        return -((-raw) // _UNIT)
    return raw // _UNIT


@dataclass(frozen=True)
class BalanceSnapshot:
    primary: int = 0
    wrapped: int = 0
    converted_primary: int = 0

    @classmethod
    def empty(cls) -> "BalanceSnapshot":
        return cls()

    @property
    def available_primary(self) -> int:
        return self.primary + self.converted_primary

    @property
    def available_wrapped(self) -> int:
        # may go negative only if chain state moved between the three reads
        return self.wrapped - self.converted_primary

    @property
    def primary_display(self) -> int:
        return to_display(self.primary)

    @property
    def wrapped_display(self) -> int:
        return to_display(self.wrapped)

    @property
    def converted_primary_display(self) -> int:
        return to_display(self.converted_primary)

    @property
    def available_primary_display(self) -> int:
        return to_display(self.available_primary)

    @property
    def available_wrapped_display(self) -> int:
        return to_display(self.available_wrapped)

    def to_dict(self) -> dict:
        # raw amounts as strings, JSON numbers lose precision past 2**53
        return {
            "b3tr": str(self.primary),
            "vot3": str(self.wrapped),
            "convertedB3tr": str(self.converted_primary),
            "availableB3tr": str(self.available_primary),
            "availableVot3": str(self.available_wrapped),
            "b3trAsNumber": self.primary_display,
            "vot3AsNumber": self.wrapped_display,
            "convertedB3trAsNumber": self.converted_primary_display,
            "availableB3trAsNumber": self.available_primary_display,
            "availableVot3AsNumber": self.available_wrapped_display,
        }


async def _read_amount(ledger, contract, method, owner) -> int:
    result = await ledger.read(contract, method, owner)
    if result.reverted:
        raise CallReverted(contract, method.signature)
    return int(result.decoded["balance"])


async def load_balance(ledger, addresses: ContractAddresses, owner: str) -> BalanceSnapshot:
    """Read held B3TR, held VOT3 and converted B3TR for owner.

    Never raises: any failed read yields BalanceSnapshot.empty(), so a node
    outage is indistinguishable from a zero balance at this layer.
    """
    try:
        primary, wrapped, converted = await asyncio.gather(
            _read_amount(ledger, addresses.b3tr, BALANCE_OF, owner),
            _read_amount(ledger, addresses.vot3, BALANCE_OF, owner),
            _read_amount(ledger, addresses.vot3, CONVERTED_B3TR_OF, owner),
        )
    except Exception as e:
        log.warning("balance load for %s failed, using empty snapshot: %s", owner, e)
        return BalanceSnapshot.empty()
    return BalanceSnapshot(primary=primary, wrapped=wrapped, converted_primary=converted)
