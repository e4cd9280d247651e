"""Static registry of the contract methods the pool toolkit calls.

Every call site shares one descriptor per method so the named, typed
argument/return schemas stay identical to the on-chain ABI.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from eth_abi import decode, encode
from web3 import Web3

Param = Tuple[str, str]


def _normalize(abi_type: str, value: Any) -> Any:
    if abi_type.endswith("[]"):
        inner = abi_type[:-2]
        return [_normalize(inner, v) for v in value]
    if abi_type == "address":
        return Web3.to_checksum_address(value)
    if abi_type.startswith("uint") or abi_type.startswith("int"):
        return int(value)
    if abi_type.startswith("bytes"):
        raw = Web3.to_bytes(hexstr=value) if isinstance(value, str) else bytes(value)
        size = abi_type[len("bytes"):]
        if size:
            # fixed-size bytes are right-padded, as solidity does for bytesN literals
            if len(raw) > int(size):
                raise ValueError(f"{len(raw)} bytes do not fit in {abi_type}")
            raw = raw.ljust(int(size), b"\x00")
        return raw
    return value


@dataclass(frozen=True)
class Method:
    name: str
    inputs: Tuple[Param, ...] = ()
    outputs: Tuple[Param, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(t for _, t in self.inputs)})"

    @property
    def selector(self) -> bytes:
        return bytes(Web3.keccak(text=self.signature)[:4])

    def encode(self, *args) -> str:
        if len(args) != len(self.inputs):
            raise TypeError(f"{self.signature} takes {len(self.inputs)} arguments, got {len(args)}")
        types = [t for _, t in self.inputs]
        values = [_normalize(t, a) for t, a in zip(types, args)]
        return "0x" + (self.selector + encode(types, values)).hex()

    def decode(self, data: str) -> Dict[str, Any]:
        """Decode return data into a dict keyed by output name (or position)."""
        if not self.outputs:
            return {}
        raw = Web3.to_bytes(hexstr=data) if data else b""
        values = decode([t for _, t in self.outputs], raw)
        out = {}
        for i, ((name, _), value) in enumerate(zip(self.outputs, values)):
            out[name or str(i)] = value
        return out


# ---- ERC20 (B3TR / VOT3) ----
BALANCE_OF = Method("balanceOf", (("account", "address"),), (("balance", "uint256"),))
TRANSFER = Method("transfer", (("recipient", "address"), ("amount", "uint256")))
APPROVE = Method("approve", (("spender", "address"), ("amount", "uint256")), (("", "bool"),))

# ---- VOT3 conversion ----
CONVERTED_B3TR_OF = Method("convertedB3trOf", (("account", "address"),), (("balance", "uint256"),))
CONVERT_TO_VOT3 = Method("convertToVOT3", (("amount", "uint256"),))
CONVERT_TO_B3TR = Method("convertToB3TR", (("amount", "uint256"),))

# ---- pool registry ----
TOKEN_OF_OWNER_BY_INDEX = Method(
    "tokenOfOwnerByIndex",
    (("owner", "address"), ("tokenIndex", "uint256")),
    (("tokenId", "uint256"),),
)
GET_POOL_ADDRESS = Method("getPoolAddress", (("tokenId", "uint256"),), (("tbaAddress", "address"),))
CREATE_POOL = Method("createPool", (("tokenId", "uint256"), ("to", "address"), ("tokenURI", "string")))

# ---- pool (token-bound account) ----
EXECUTE = Method(
    "execute",
    (("to", "address"), ("value", "uint256"), ("data", "bytes"), ("operation", "uint256")),
)
EXECUTE_WITH_AUTHORIZATION = Method(
    "executeWithAuthorization",
    (
        ("to", "address"),
        ("value", "uint256"),
        ("data", "bytes"),
        ("validAfter", "uint256"),
        ("validBefore", "uint256"),
        ("nonce", "uint256"),
        ("signature", "bytes"),
    ),
)
TOKEN = Method(
    "token",
    (),
    (("chainId", "uint256"), ("tokenContract", "address"), ("tokenId", "uint256")),
)

# ---- votes ----
CAST_VOTES = Method("castVotes", (("appIds", "bytes32[]"), ("percentages", "uint8[]")))
