"""Signed, time-bounded authorizations for executing an instruction as the pool.

The typed-data layout below is checked on chain by the pool contract and must
stay bit-for-bit identical for signatures to verify.
"""
from __future__ import annotations

import inspect
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Union

from eth_account import Account
from web3 import Web3

DOMAIN_NAME = "vedelegate.vet"
DOMAIN_VERSION = "1"
PRIMARY_TYPE = "ExecuteWithAuthorization"

VALID_AFTER_SKEW = 10
VALIDITY_SECONDS = 3600

EXECUTE_WITH_AUTHORIZATION_TYPES: Dict[str, List[Dict[str, str]]] = {
    PRIMARY_TYPE: [
        {"name": "to", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "data", "type": "bytes"},
        {"name": "validAfter", "type": "uint256"},
        {"name": "validBefore", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
    ]
}

# (domain, types, message) -> signature hex, sync or async
SignCallback = Callable[[Dict[str, Any], Dict[str, Any], Dict[str, Any]], Union[str, Awaitable[str]]]


@dataclass(frozen=True)
class AuthorizationEnvelope:
    domain: Dict[str, Any]
    types: Dict[str, Any]
    message: Dict[str, Any]
    signature: str
    primary_type: str = field(default=PRIMARY_TYPE)


def build_domain(chain_id: str, verifying_contract: str, name: str = DOMAIN_NAME) -> Dict[str, Any]:
    return {
        "name": name,
        "version": DOMAIN_VERSION,
        "chainId": chain_id,
        "verifyingContract": verifying_contract,
    }


def new_nonce() -> str:
    """Random uint256 as a decimal string, like the other uint fields on the wire."""
    return str(secrets.randbits(256))


async def build_authorization(to: str, value: int, data: str, sign: SignCallback, *,
                              chain_id: str, verifying_contract: str,
                              app_name: str = DOMAIN_NAME) -> AuthorizationEnvelope:
    now = int(time.time())
    domain = build_domain(chain_id, verifying_contract, app_name)
    message = {
        "to": to,
        "value": int(value),
        "data": data,
        "validAfter": now - VALID_AFTER_SKEW,
        "validBefore": now + VALIDITY_SECONDS,
        "nonce": new_nonce(),
    }
    # errors from the signer (user rejection etc.) propagate as-is
    signature = sign(domain, EXECUTE_WITH_AUTHORIZATION_TYPES, message)
    if inspect.isawaitable(signature):
        signature = await signature
    return AuthorizationEnvelope(domain=domain, types=EXECUTE_WITH_AUTHORIZATION_TYPES,
                                 message=message, signature=signature)


class LocalSigner:
    """Signing capability backed by a private key held in-process."""

    def __init__(self, private_key: str):
        self._account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self._account.address

    def __call__(self, domain, types, message) -> str:
        domain_data = dict(domain)
        domain_data["chainId"] = int(domain_data["chainId"])
        message_data = dict(message)
        if isinstance(message_data["data"], str):
            message_data["data"] = Web3.to_bytes(hexstr=message_data["data"])
        message_data["nonce"] = int(message_data["nonce"])
        signed = self._account.sign_typed_data(domain_data, dict(types), message_data)
        return "0x" + bytes(signed.signature).hex()
