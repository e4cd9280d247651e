"""Manage a veDelegate staking pool (B3TR / VOT3) on VeChainThor."""
from .authorization import AuthorizationEnvelope, LocalSigner, build_authorization
from .balance import BalanceSnapshot, load_balance
from .clauses import Clause, execute_on_account
from .config import ContractAddresses, Settings, load_settings
from .context import PoolContext, StaticAccountProvider
from .coordinator import Phase, PoolCoordinator
from .errors import (
    CallReverted, ConfigError, LedgerError, PoolNotReadyError, VeDelegateError, VoteValidationError,
)
from .flows import build_deposit_clauses, build_support_clauses, build_withdraw_clauses
from .ledger import AccountMeta, CallResult, LedgerClient, ThorClient
from .resolver import PoolIdentity, resolve_chain_id, resolve_pool_address, resolve_token_id

__version__ = "0.1.0"
