"""
Input validators for OVERCALL.

Addresses, hex payloads and block tags are validated here before they
reach the call builders, so malformed input fails before any network I/O.

USAGE:
    from core.validators import normalize_address, normalize_hex, normalize_block_tag

    host = normalize_address("0xAbC...")          # -> "0xabc..."
    code = normalize_hex(artifact_bytecode, "code") # -> "0x6080..."
    block = normalize_block_tag(18_500_000)         # -> "0x11a49a0"
"""

import re

from core.constants import ADDRESS_BYTES, ErrorCode, SYMBOLIC_BLOCK_TAGS
from core.exceptions import EncodingError

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
HEX_RE = re.compile(r"^0x([0-9a-fA-F]{2})*$")
BLOCK_NUMBER_RE = re.compile(r"^0x[0-9a-fA-F]+$")


def is_address(value: object) -> bool:
    """Check that value is a 0x-prefixed 20-byte hex string."""
    return isinstance(value, str) and bool(ADDRESS_RE.match(value))


def normalize_address(value: object, field: str = "address") -> str:
    """
    Validate and lowercase an address.

    Addresses are compared case-insensitively everywhere in the harness,
    so the lowercase form is the canonical key.

    Raises:
        EncodingError: If value is not a 20-byte hex address
    """
    if not is_address(value):
        raise EncodingError(
            f"Invalid {field}: expected 0x-prefixed {ADDRESS_BYTES}-byte hex",
            code=ErrorCode.ENCODE_INVALID_ADDRESS,
            details={"field": field, "value": repr(value)[:80]},
        )
    return value.lower()


def normalize_hex(value: object, field: str = "data", allow_empty: bool = True) -> str:
    """
    Validate a 0x-prefixed, even-length hex payload and lowercase it.

    Foundry artifacts sometimes omit the 0x prefix; it is added here.

    Raises:
        EncodingError: If value is not hex, or empty when not allowed
    """
    if isinstance(value, (bytes, bytearray)):
        value = "0x" + bytes(value).hex()
    if isinstance(value, str) and value and not value.startswith("0x"):
        value = "0x" + value
    if not isinstance(value, str) or not HEX_RE.match(value):
        raise EncodingError(
            f"Invalid {field}: expected even-length 0x-prefixed hex",
            code=ErrorCode.ENCODE_INVALID_ARGUMENT,
            details={"field": field, "value": repr(value)[:80]},
        )
    if not allow_empty and value == "0x":
        raise EncodingError(
            f"Invalid {field}: empty payload",
            code=ErrorCode.ENCODE_INVALID_ARGUMENT,
            details={"field": field},
        )
    return value.lower()


def normalize_block_tag(block: object) -> str:
    """
    Normalize a block context to its JSON-RPC form.

    Accepts a symbolic tag ("pending", "latest", ...), a block number as
    int, a decimal string, or a 0x-prefixed hex quantity.

    Raises:
        EncodingError: If the block cannot be interpreted
    """
    if isinstance(block, bool):
        raise EncodingError(
            "Invalid block: bool is not a block number",
            details={"block": repr(block)},
        )
    if isinstance(block, int):
        if block < 0:
            raise EncodingError(
                "Invalid block: negative block number",
                details={"block": block},
            )
        return hex(block)
    if isinstance(block, str):
        tag = block.strip().lower()
        if tag in SYMBOLIC_BLOCK_TAGS:
            return tag
        if tag.isdigit():
            return hex(int(tag))
        if BLOCK_NUMBER_RE.match(tag):
            return hex(int(tag, 16))
    raise EncodingError(
        "Invalid block: expected tag, number or hex quantity",
        details={"block": repr(block)[:80]},
    )
