"""
Constants for OVERCALL.

Contains enums, wire constants and mainnet defaults used by the harness.
"""

from enum import Enum
from typing import Final

# =============================================================================
# ERROR CODES
# =============================================================================


class ErrorCode(str, Enum):
    """
    Canonical error codes.

    Grouped by the failure kind the caller has to tell apart:
    configuration, encoding, transport/node, simulated revert, decoding.
    """
    # Configuration (fatal, before any network call)
    CONFIG_MISSING_RPC = "CONFIG_MISSING_RPC"
    CONFIG_INVALID = "CONFIG_INVALID"
    CONFIG_MISSING_ARTIFACT = "CONFIG_MISSING_ARTIFACT"

    # Encoding (fatal, before any network call)
    ENCODE_INVALID_ARGUMENT = "ENCODE_INVALID_ARGUMENT"
    ENCODE_ARITY_MISMATCH = "ENCODE_ARITY_MISMATCH"
    ENCODE_INVALID_ADDRESS = "ENCODE_INVALID_ADDRESS"
    ENCODE_DUPLICATE_OVERRIDE = "ENCODE_DUPLICATE_OVERRIDE"
    HOST_ADDRESS_IN_USE = "HOST_ADDRESS_IN_USE"

    # Transport / node (transport failures are retried with a fresh host address)
    INFRA_RPC_ERROR = "INFRA_RPC_ERROR"
    INFRA_RPC_UNAVAILABLE = "INFRA_RPC_UNAVAILABLE"
    INFRA_TIMEOUT = "INFRA_TIMEOUT"
    INFRA_BAD_RESPONSE = "INFRA_BAD_RESPONSE"

    # Simulated contract revert (never retried)
    SIM_REVERT = "SIM_REVERT"

    # Decoding (fatal, signature mismatch)
    DECODE_LENGTH_MISMATCH = "DECODE_LENGTH_MISMATCH"
    DECODE_INVALID_VALUE = "DECODE_INVALID_VALUE"

    UNKNOWN = "UNKNOWN"


class SimulationOutcome(str, Enum):
    """Outcome tag of a simulated call."""
    SUCCESS = "SUCCESS"
    REVERTED = "REVERTED"


# =============================================================================
# WIRE CONSTANTS
# =============================================================================

ADDRESS_BYTES: Final[int] = 20
WORD_BYTES: Final[int] = 32
WORD_HEX_CHARS: Final[int] = WORD_BYTES * 2
SELECTOR_HEX_CHARS: Final[int] = 8

MAX_UINT256: Final[int] = 2**256 - 1

# Block tags accepted by eth_call
BLOCK_PENDING: Final[str] = "pending"
BLOCK_LATEST: Final[str] = "latest"
BLOCK_SAFE: Final[str] = "safe"
BLOCK_FINALIZED: Final[str] = "finalized"
BLOCK_EARLIEST: Final[str] = "earliest"
SYMBOLIC_BLOCK_TAGS: Final[frozenset[str]] = frozenset([
    BLOCK_PENDING,
    BLOCK_LATEST,
    BLOCK_SAFE,
    BLOCK_FINALIZED,
    BLOCK_EARLIEST,
])

# JSON-RPC error code geth uses for "execution reverted" with revert data
RPC_CODE_EXECUTION_REVERTED: Final[int] = 3

# HTTP statuses after which another endpoint (or a later attempt) may succeed
TRANSIENT_HTTP_STATUSES: Final[frozenset[int]] = frozenset([429, 500, 502, 503, 504])

# JSON-RPC errors that report node load or lag, not a bad request:
# -32005 limit exceeded (rate limits), -32603 internal error
TRANSIENT_RPC_CODES: Final[frozenset[int]] = frozenset([-32005, -32603])
TRANSIENT_RPC_MESSAGES: Final[tuple[str, ...]] = (
    "header not found",
    "rate limit",
    "limit exceeded",
    "too many requests",
)

# Messages some clients return for contract-level halts without revert data
EVM_HALT_MESSAGES: Final[tuple[str, ...]] = (
    "execution reverted",
    "invalid opcode",
    "invalid jump destination",
    "out of gas",
    "stack underflow",
    "stack overflow",
    "write protection",
    "return data out of bounds",
    "vm exception",
)

# Revert payload selectors
# keccak256("Error(string)")[:4]
SELECTOR_ERROR_STRING: Final[str] = "08c379a0"
# keccak256("Panic(uint256)")[:4]
SELECTOR_PANIC: Final[str] = "4e487b71"

PANIC_CODES: Final[dict[int, str]] = {
    0x00: "generic compiler panic",
    0x01: "assertion failed",
    0x11: "arithmetic overflow or underflow",
    0x12: "division or modulo by zero",
    0x21: "invalid enum value",
    0x22: "invalid storage byte array",
    0x31: "pop on empty array",
    0x32: "array index out of bounds",
    0x41: "out of memory",
    0x51: "call to zero-initialized function",
}

# Bytecode that reverts unconditionally: PUSH1 0 PUSH1 0 REVERT
ALWAYS_REVERT_BYTECODE: Final[str] = "0x60006000fd"

# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_TIMEOUT_SECONDS: Final[float] = 10.0
DEFAULT_MAX_ATTEMPTS: Final[int] = 3
DEFAULT_ARTIFACTS_DIR: Final[str] = "out"
NODE_RPC_ENV: Final[str] = "NODE_RPC"

SERVICE_NAME: Final[str] = "overcall"
SERVICE_VERSION: Final[str] = "0.1.0"
