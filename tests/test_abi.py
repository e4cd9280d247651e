import pytest

from vedelegate.abi import (
    APPROVE, BALANCE_OF, CAST_VOTES, EXECUTE_WITH_AUTHORIZATION, TOKEN_OF_OWNER_BY_INDEX, TRANSFER,
)


def test_signatures_match_onchain_abi():
    assert TRANSFER.selector.hex() == "a9059cbb"
    assert BALANCE_OF.selector.hex() == "70a08231"
    assert APPROVE.selector.hex() == "095ea7b3"
    assert TOKEN_OF_OWNER_BY_INDEX.signature == "tokenOfOwnerByIndex(address,uint256)"
    assert CAST_VOTES.signature == "castVotes(bytes32[],uint8[])"
    assert EXECUTE_WITH_AUTHORIZATION.signature == (
        "executeWithAuthorization(address,uint256,bytes,uint256,uint256,uint256,bytes)")


def test_encode_checks_argument_count():
    with pytest.raises(TypeError):
        TRANSFER.encode("0x" + "11" * 20)


def test_oversized_bytes32_is_rejected():
    with pytest.raises(ValueError):
        CAST_VOTES.encode(["0x" + "ff" * 33], [100])


def test_decode_uses_output_names():
    data = "0x" + (7).to_bytes(32, "big").hex()
    assert BALANCE_OF.decode(data) == {"balance": 7}
    assert APPROVE.decode("0x" + (1).to_bytes(32, "big").hex()) == {"0": True}
