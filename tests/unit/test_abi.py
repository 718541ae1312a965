"""
tests/unit/test_abi.py - Static ABI codec unit tests.
"""

import pytest

from core.constants import ErrorCode
from core.exceptions import DecodingError, EncodingError
from harness.abi import (
    FunctionSpec,
    canonical_type,
    decode_revert_reason,
    decode_values,
    encode_call,
    encode_word,
)

WALLET = "0x5d3a536E4D6DbD6114cc1Ead35777bAB948E3643"


@pytest.fixture
def transfer_spec():
    # keccak256("transfer(address,uint256)")[:4] = 0xa9059cbb
    return FunctionSpec(
        name="transfer",
        inputs=("address", "uint256"),
        outputs=("bool",),
        selector="a9059cbb",
    )


class TestFunctionSpec:
    """Test FunctionSpec declaration."""

    def test_selector_normalized(self, transfer_spec):
        """Selector gets a 0x prefix and is lowercased."""
        assert transfer_spec.selector == "0xa9059cbb"

    def test_signature(self, transfer_spec):
        assert transfer_spec.signature == "transfer(address,uint256)"

    def test_uint_alias_canonicalized(self):
        """uint/int aliases become uint256/int256."""
        spec = FunctionSpec(name="f", inputs=("uint", "int"), outputs=("uint",), selector="0x12345678")
        assert spec.inputs == ("uint256", "int256")
        assert spec.outputs == ("uint256",)

    def test_invalid_selector_rejected(self):
        with pytest.raises(EncodingError):
            FunctionSpec(name="f", inputs=(), outputs=(), selector="0x1234")

    def test_dynamic_type_rejected(self):
        """Dynamic types are not supported for calls."""
        with pytest.raises(EncodingError):
            FunctionSpec(name="f", inputs=("string",), outputs=(), selector="0x12345678")

    @pytest.mark.parametrize("type_name", ["uint7", "uint264", "bytes33", "bytes0", "tuple"])
    def test_bad_static_types(self, type_name):
        with pytest.raises(EncodingError):
            canonical_type(type_name)


class TestEncoding:
    """Test calldata encoding."""

    def test_encode_transfer(self, transfer_spec):
        """Encodes selector followed by one word per argument."""
        calldata = encode_call(transfer_spec, [WALLET, 100 * 10**18])

        assert calldata.startswith("0xa9059cbb")
        # 0x + selector(8) + 2*64
        assert len(calldata) == 138
        assert calldata[10:74] == "0" * 24 + WALLET[2:].lower()
        assert calldata[74:] == hex(100 * 10**18)[2:].zfill(64)

    def test_encode_no_args(self):
        spec = FunctionSpec(name="swap", inputs=(), outputs=("uint256",), selector="8119c065")
        assert encode_call(spec, []) == "0x8119c065"

    def test_arity_mismatch(self, transfer_spec):
        """Wrong argument count fails before any network call."""
        with pytest.raises(EncodingError) as exc_info:
            encode_call(transfer_spec, [WALLET])

        assert exc_info.value.code == ErrorCode.ENCODE_ARITY_MISMATCH
        assert exc_info.value.details["function"] == "transfer(address,uint256)"

    def test_invalid_address(self, transfer_spec):
        with pytest.raises(EncodingError) as exc_info:
            encode_call(transfer_spec, ["0x1234", 1])

        assert exc_info.value.code == ErrorCode.ENCODE_INVALID_ADDRESS

    @pytest.mark.parametrize(
        "type_name,value",
        [
            ("uint256", -1),
            ("uint256", 2**256),
            ("uint8", 256),
            ("uint256", True),
            ("uint256", "100"),
            ("int8", 128),
            ("int8", -129),
            ("bool", 1),
            ("bytes4", "0xdead"),
        ],
    )
    def test_out_of_range_values(self, type_name, value):
        with pytest.raises(EncodingError):
            encode_word(type_name, value)

    def test_max_uint256(self):
        assert encode_word("uint256", 2**256 - 1) == "f" * 64

    def test_negative_int(self):
        """Signed ints are two's complement over 256 bits."""
        assert encode_word("int256", -1) == "f" * 64
        assert encode_word("int8", -128) == "f" * 62 + "80"

    def test_bool(self):
        assert encode_word("bool", True) == "0" * 63 + "1"
        assert encode_word("bool", False) == "0" * 64

    def test_fixed_bytes_right_padded(self):
        assert encode_word("bytes4", "0xdeadbeef") == "deadbeef" + "0" * 56


class TestDecoding:
    """Test strict output decoding."""

    def test_decode_uint(self):
        assert decode_values(("uint256",), "0x" + hex(100)[2:].zfill(64)) == (100,)

    def test_decode_multiple(self):
        data = "0x" + hex(7)[2:].zfill(64) + "0" * 24 + WALLET[2:] + "0" * 63 + "1"
        amount, address, flag = decode_values(("uint256", "address", "bool"), data)

        assert amount == 7
        assert address == WALLET.lower()
        assert flag is True

    def test_short_payload_rejected(self):
        """31 bytes for a uint256 is an error, never zero-padded."""
        with pytest.raises(DecodingError) as exc_info:
            decode_values(("uint256",), "0x" + "00" * 31)

        assert exc_info.value.code == ErrorCode.DECODE_LENGTH_MISMATCH
        assert exc_info.value.details["actual_bytes"] == 31
        assert exc_info.value.details["expected_bytes"] == 32

    def test_long_payload_rejected(self):
        """Extra words are an error, never silently dropped."""
        with pytest.raises(DecodingError) as exc_info:
            decode_values(("uint256",), "0x" + "00" * 64)

        assert exc_info.value.code == ErrorCode.DECODE_LENGTH_MISMATCH

    def test_empty_payload_rejected(self):
        with pytest.raises(DecodingError):
            decode_values(("uint256",), "0x")

    def test_non_hex_payload_rejected(self):
        with pytest.raises(DecodingError) as exc_info:
            decode_values(("uint256",), "0xzz")

        assert exc_info.value.code == ErrorCode.DECODE_INVALID_VALUE

    def test_dirty_address_rejected(self):
        with pytest.raises(DecodingError) as exc_info:
            decode_values(("address",), "0x" + "1" * 64)

        assert exc_info.value.code == ErrorCode.DECODE_INVALID_VALUE

    def test_invalid_bool_rejected(self):
        with pytest.raises(DecodingError):
            decode_values(("bool",), "0x" + "0" * 63 + "2")

    def test_uint8_overflow_rejected(self):
        with pytest.raises(DecodingError):
            decode_values(("uint8",), "0x" + "0" * 61 + "100")

    def test_decode_negative_int(self):
        assert decode_values(("int256",), "0x" + "f" * 64) == (-1,)

    def test_decode_fixed_bytes(self):
        assert decode_values(("bytes4",), "0xdeadbeef" + "0" * 56) == (b"\xde\xad\xbe\xef",)

    def test_fixed_bytes_dirty_padding_rejected(self):
        with pytest.raises(DecodingError):
            decode_values(("bytes4",), "0xdeadbeef" + "0" * 55 + "1")


class TestRevertReason:
    """Test revert payload rendering."""

    def test_error_string(self):
        """Error(string) payload yields the message."""
        data = (
            "0x08c379a0"
            + hex(32)[2:].zfill(64)
            + hex(2)[2:].zfill(64)
            + "4869".ljust(64, "0")
        )
        assert decode_revert_reason(data) == "Hi"

    def test_panic(self):
        data = "0x4e487b71" + hex(0x11)[2:].zfill(64)
        assert decode_revert_reason(data) == "panic 0x11 (arithmetic overflow or underflow)"

    def test_empty(self):
        assert decode_revert_reason(None) is None
        assert decode_revert_reason("0x") is None

    def test_custom_error(self):
        assert decode_revert_reason("0xdeadbeef") == "custom error 0xdeadbeef"

    def test_truncated_error_string(self):
        """A malformed payload is described, not raised."""
        data = "0x08c379a0" + hex(32)[2:].zfill(64) + hex(10)[2:].zfill(64) + "4869"
        assert decode_revert_reason(data).startswith("malformed Error(string)")
