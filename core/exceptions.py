"""
Typed exceptions for OVERCALL.

Every failure carries an ErrorCode so callers can distinguish a
configuration problem, a bad call encoding, a node/transport failure,
a revert of the simulated contract, and a result that does not decode.
"""

from typing import Any, Optional

from core.constants import ErrorCode


class OvercallError(Exception):
    """Base exception for OVERCALL."""

    default_code = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def __str__(self):
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigError(OvercallError):
    """Missing or invalid configuration (node endpoint, artifacts)."""
    default_code = ErrorCode.CONFIG_INVALID


class EncodingError(OvercallError):
    """Call arguments do not match the declared function interface."""
    default_code = ErrorCode.ENCODE_INVALID_ARGUMENT


class InfraError(OvercallError):
    """Infrastructure-related errors (transport, node availability)."""
    default_code = ErrorCode.INFRA_RPC_UNAVAILABLE


class RPCError(InfraError):
    """
    The node answered with a JSON-RPC error object.

    Keeps the raw error fields so the executor can tell a contract
    revert apart from a rejected request.
    """

    default_code = ErrorCode.INFRA_RPC_ERROR

    def __init__(
        self,
        message: str,
        rpc_code: Optional[int] = None,
        rpc_message: str = "",
        rpc_data: Any = None,
        code: Optional[ErrorCode] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, code=code, details=details)
        self.rpc_code = rpc_code
        self.rpc_message = rpc_message
        self.rpc_data = rpc_data

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["rpc_code"] = self.rpc_code
        data["rpc_message"] = self.rpc_message
        return data


class RPCTimeoutError(InfraError):
    """Node call timed out."""
    default_code = ErrorCode.INFRA_TIMEOUT


class SimulatedRevertError(OvercallError):
    """The simulated contract call reverted."""

    default_code = ErrorCode.SIM_REVERT

    def __init__(
        self,
        message: str,
        revert_data: Optional[str] = None,
        revert_reason: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details=details)
        self.revert_data = revert_data
        self.revert_reason = revert_reason

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["revert_data"] = self.revert_data
        data["revert_reason"] = self.revert_reason
        return data


class DecodingError(OvercallError):
    """Returned bytes do not match the declared output types."""
    default_code = ErrorCode.DECODE_LENGTH_MISMATCH
