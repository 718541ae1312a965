"""
harness/abi.py - Static ABI encoding for simulated calls.

The node only accepts raw bytes, so every function the harness invokes is
declared up front as a FunctionSpec (selector + argument types + return
types). Only static types are supported for call arguments and return
values: address, bool, uint<M>, int<M>, bytes<M>. Every value occupies
exactly one 32-byte word.

Decoding is strict: a payload whose width differs from the declared
output types is rejected instead of being padded or truncated.
"""

import re
from dataclasses import dataclass
from typing import Any, Sequence

from core.constants import (
    ADDRESS_BYTES,
    ErrorCode,
    PANIC_CODES,
    SELECTOR_ERROR_STRING,
    SELECTOR_HEX_CHARS,
    SELECTOR_PANIC,
    WORD_BYTES,
    WORD_HEX_CHARS,
)
from core.exceptions import DecodingError, EncodingError
from core.validators import is_address, normalize_hex

UINT_RE = re.compile(r"^uint(\d*)$")
INT_RE = re.compile(r"^int(\d*)$")
FIXED_BYTES_RE = re.compile(r"^bytes(\d+)$")
SELECTOR_RE = re.compile(r"^(0x)?[0-9a-fA-F]{8}$")


# =============================================================================
# TYPE PARSING
# =============================================================================

def _bits(type_name: str, raw: str) -> int:
    bits = int(raw) if raw else 256
    if bits % 8 != 0 or not 8 <= bits <= 256:
        raise EncodingError(
            f"Unsupported ABI type: {type_name}",
            details={"type": type_name},
        )
    return bits


def canonical_type(type_name: str) -> str:
    """
    Return the canonical form of a static ABI type (uint -> uint256).

    Raises:
        EncodingError: If the type is dynamic or unknown
    """
    if type_name in ("address", "bool"):
        return type_name
    match = UINT_RE.match(type_name)
    if match:
        return f"uint{_bits(type_name, match.group(1))}"
    match = INT_RE.match(type_name)
    if match:
        return f"int{_bits(type_name, match.group(1))}"
    match = FIXED_BYTES_RE.match(type_name)
    if match and 1 <= int(match.group(1)) <= WORD_BYTES:
        return type_name
    raise EncodingError(
        f"Unsupported ABI type: {type_name} (only static types are supported)",
        details={"type": type_name},
    )


# =============================================================================
# FUNCTION INTERFACE
# =============================================================================

@dataclass(frozen=True)
class FunctionSpec:
    """
    Statically declared callable surface of a contract function.

    Usage:
        swap = FunctionSpec(
            name="swap",
            inputs=("address", "uint256"),
            outputs=("uint256",),
            selector="0x...",
        )
        calldata = encode_call(swap, [wallet, amount])
    """
    name: str
    inputs: tuple[str, ...]
    outputs: tuple[str, ...]
    selector: str
    payable: bool = False

    def __post_init__(self) -> None:
        if not SELECTOR_RE.match(self.selector):
            raise EncodingError(
                f"Invalid selector for {self.name}: {self.selector!r}",
                details={"function": self.name},
            )
        selector = self.selector.lower()
        if not selector.startswith("0x"):
            selector = "0x" + selector
        object.__setattr__(self, "selector", selector)
        object.__setattr__(self, "inputs", tuple(canonical_type(t) for t in self.inputs))
        object.__setattr__(self, "outputs", tuple(canonical_type(t) for t in self.outputs))

    @property
    def signature(self) -> str:
        """Canonical signature, e.g. swap(address,uint256)."""
        return f"{self.name}({','.join(self.inputs)})"


# =============================================================================
# ENCODING
# =============================================================================

def _encode_int(value: Any, type_name: str, signed: bool, bits: int) -> str:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(
            f"Expected int for {type_name}, got {type(value).__name__}",
            details={"type": type_name, "value": repr(value)[:80]},
        )
    if signed:
        low, high = -(2 ** (bits - 1)), 2 ** (bits - 1) - 1
    else:
        low, high = 0, 2**bits - 1
    if not low <= value <= high:
        raise EncodingError(
            f"Value out of range for {type_name}",
            details={"type": type_name, "value": str(value)},
        )
    if value < 0:
        value += 2 ** (WORD_BYTES * 8)
    return hex(value)[2:].zfill(WORD_HEX_CHARS)


def encode_word(type_name: str, value: Any) -> str:
    """
    Encode one static value as a 32-byte word (64 hex chars, no 0x).

    Raises:
        EncodingError: If the value does not fit the type
    """
    type_name = canonical_type(type_name)

    if type_name == "address":
        if not is_address(value):
            raise EncodingError(
                f"Expected address, got {repr(value)[:80]}",
                code=ErrorCode.ENCODE_INVALID_ADDRESS,
                details={"type": type_name},
            )
        return value.lower().replace("0x", "").zfill(WORD_HEX_CHARS)

    if type_name == "bool":
        if not isinstance(value, bool):
            raise EncodingError(
                f"Expected bool, got {type(value).__name__}",
                details={"type": type_name},
            )
        return ("1" if value else "0").zfill(WORD_HEX_CHARS)

    if type_name.startswith("uint"):
        return _encode_int(value, type_name, signed=False, bits=int(type_name[4:]))

    if type_name.startswith("int"):
        return _encode_int(value, type_name, signed=True, bits=int(type_name[3:]))

    # bytes<M>: left-aligned, right-padded
    size = int(type_name[5:])
    data = normalize_hex(value, type_name)[2:]
    if len(data) != size * 2:
        raise EncodingError(
            f"Expected {size} bytes for {type_name}, got {len(data) // 2}",
            details={"type": type_name},
        )
    return data.ljust(WORD_HEX_CHARS, "0")


def encode_args(types: Sequence[str], args: Sequence[Any]) -> str:
    """Encode a static argument tuple (no selector, no 0x)."""
    if len(types) != len(args):
        raise EncodingError(
            f"Expected {len(types)} arguments, got {len(args)}",
            code=ErrorCode.ENCODE_ARITY_MISMATCH,
            details={"types": list(types), "arg_count": len(args)},
        )
    return "".join(encode_word(t, a) for t, a in zip(types, args))


def encode_call(function: FunctionSpec, args: Sequence[Any]) -> str:
    """
    Encode calldata: 0x + 4-byte selector + one word per argument.

    Raises:
        EncodingError: On arity or type mismatch (before any network call)
    """
    try:
        body = encode_args(function.inputs, args)
    except EncodingError as e:
        e.details.setdefault("function", function.signature)
        raise
    return f"{function.selector}{body}"


# =============================================================================
# DECODING
# =============================================================================

def _decode_word(type_name: str, word: str, index: int) -> Any:
    value = int(word, 16)

    if type_name == "address":
        if value >> (ADDRESS_BYTES * 8):
            raise DecodingError(
                f"Output {index}: dirty high bits in address word",
                code=ErrorCode.DECODE_INVALID_VALUE,
                details={"index": index, "word": word},
            )
        return "0x" + word[-ADDRESS_BYTES * 2:]

    if type_name == "bool":
        if value not in (0, 1):
            raise DecodingError(
                f"Output {index}: invalid bool word",
                code=ErrorCode.DECODE_INVALID_VALUE,
                details={"index": index, "word": word},
            )
        return value == 1

    if type_name.startswith("uint"):
        bits = int(type_name[4:])
        if value >> bits:
            raise DecodingError(
                f"Output {index}: value exceeds {type_name}",
                code=ErrorCode.DECODE_INVALID_VALUE,
                details={"index": index, "word": word},
            )
        return value

    if type_name.startswith("int"):
        bits = int(type_name[3:])
        if value >= 2 ** (WORD_BYTES * 8 - 1):
            value -= 2 ** (WORD_BYTES * 8)
        if not -(2 ** (bits - 1)) <= value < 2 ** (bits - 1):
            raise DecodingError(
                f"Output {index}: value exceeds {type_name}",
                code=ErrorCode.DECODE_INVALID_VALUE,
                details={"index": index, "word": word},
            )
        return value

    size = int(type_name[5:])
    if int(word[size * 2:] or "0", 16):
        raise DecodingError(
            f"Output {index}: dirty padding in {type_name} word",
            code=ErrorCode.DECODE_INVALID_VALUE,
            details={"index": index, "word": word},
        )
    return bytes.fromhex(word[: size * 2])


def decode_values(types: Sequence[str], hex_data: str) -> tuple:
    """
    Decode a static output tuple.

    The payload must be exactly 32 bytes per declared type.

    Raises:
        DecodingError: On width mismatch or out-of-range words
    """
    types = [canonical_type(t) for t in types]
    try:
        data = normalize_hex(hex_data, "return data")[2:]
    except EncodingError as e:
        raise DecodingError(
            "Return data is not hex",
            code=ErrorCode.DECODE_INVALID_VALUE,
            details=e.details,
        ) from e

    expected_chars = WORD_HEX_CHARS * len(types)
    if len(data) != expected_chars:
        raise DecodingError(
            f"Return data is {len(data) // 2} bytes, expected {expected_chars // 2} "
            f"for ({','.join(types)})",
            code=ErrorCode.DECODE_LENGTH_MISMATCH,
            details={
                "expected_bytes": expected_chars // 2,
                "actual_bytes": len(data) // 2,
                "raw": hex_data[:138],
            },
        )

    return tuple(
        _decode_word(t, data[i * WORD_HEX_CHARS:(i + 1) * WORD_HEX_CHARS], i)
        for i, t in enumerate(types)
    )


def decode_revert_reason(revert_data: str | None) -> str | None:
    """
    Render a revert payload as text.

    - Error(string): the message
    - Panic(uint256): "panic 0x11 (arithmetic overflow or underflow)"
    - empty payload: None
    - custom error: "custom error 0x<selector>"

    Never raises: a malformed payload is described, not rejected.
    """
    if not revert_data:
        return None
    data = revert_data.lower()
    data = data[2:] if data.startswith("0x") else data
    if not data:
        return None

    selector, body = data[:SELECTOR_HEX_CHARS], data[SELECTOR_HEX_CHARS:]

    if selector == SELECTOR_ERROR_STRING:
        # Error(string): offset word, length word, utf-8 bytes
        try:
            offset = int(body[:WORD_HEX_CHARS], 16) * 2
            length = int(body[offset:offset + WORD_HEX_CHARS], 16) * 2
            start = offset + WORD_HEX_CHARS
            raw = body[start:start + length]
            if len(raw) != length:
                raise ValueError("truncated string")
            return bytes.fromhex(raw).decode("utf-8", errors="replace")
        except ValueError:
            return f"malformed Error(string) payload 0x{data[:72]}"

    if selector == SELECTOR_PANIC and len(body) >= WORD_HEX_CHARS:
        code = int(body[:WORD_HEX_CHARS], 16)
        description = PANIC_CODES.get(code, "unknown panic code")
        return f"panic 0x{code:02x} ({description})"

    return f"custom error 0x{selector}"
