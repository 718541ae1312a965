"""
core - Core utilities and models for OVERCALL.

This package contains:
- constants.py: Enums, wire constants and defaults
- exceptions.py: Typed exceptions with error codes
- models.py: Override map, call descriptor, simulation result
- validators.py: Address, hex and block tag validation
- format_units.py: Token quantity formatting (no float)
- logging.py: Structured JSON logging
"""

from core.constants import (
    BLOCK_PENDING,
    ErrorCode,
    SimulationOutcome,
)
from core.exceptions import (
    ConfigError,
    DecodingError,
    EncodingError,
    InfraError,
    OvercallError,
    RPCError,
    RPCTimeoutError,
    SimulatedRevertError,
)
from core.format_units import format_units, parse_units
from core.logging import get_logger, set_global_context, setup_logging
from core.models import (
    CallDescriptor,
    OverrideEntry,
    OverrideMap,
    SimulationResult,
)

__all__ = [
    # Constants
    "BLOCK_PENDING",
    "ErrorCode",
    "SimulationOutcome",
    # Exceptions
    "ConfigError",
    "DecodingError",
    "EncodingError",
    "InfraError",
    "OvercallError",
    "RPCError",
    "RPCTimeoutError",
    "SimulatedRevertError",
    # Formatting
    "format_units",
    "parse_units",
    # Models
    "CallDescriptor",
    "OverrideEntry",
    "OverrideMap",
    "SimulationResult",
    # Logging
    "get_logger",
    "set_global_context",
    "setup_logging",
]
