"""Exception types raised by the pool toolkit."""


class VeDelegateError(Exception):
    """Base class for every error the toolkit raises on purpose."""


class ConfigError(VeDelegateError):
    """A required setting is missing or malformed."""


class LedgerError(VeDelegateError):
    """Node unreachable, bad HTTP status or undecodable response."""


class CallReverted(LedgerError):
    """A simulated contract call reverted on the node."""

    def __init__(self, contract, method, vm_error=""):
        self.contract = contract
        self.method = method
        self.vm_error = vm_error
        super().__init__(f"{method} on {contract} reverted: {vm_error or 'no reason'}")


class VoteValidationError(VeDelegateError, ValueError):
    """App ids and percentages do not form a valid vote."""


class PoolNotReadyError(VeDelegateError):
    """Raised when clauses are requested before the pool address is known."""
