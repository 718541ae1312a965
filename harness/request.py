"""
harness/request.py - Call request builder.

Assembles the virtual call sent to the node: the host address as target,
calldata encoded from a statically declared FunctionSpec, and the
override map. Pure, no I/O; encoding mistakes surface here as
EncodingError instead of as a confusing revert from the node.
"""

from typing import Any, Sequence

from core.constants import BLOCK_PENDING, ErrorCode
from core.exceptions import EncodingError
from core.models import CallDescriptor, OverrideMap
from core.validators import normalize_address, normalize_block_tag
from harness.abi import FunctionSpec, encode_call


def build_call(
    host_address: str,
    function: FunctionSpec,
    args: Sequence[Any],
    overrides: OverrideMap,
    value: int | None = None,
    block: str | int = BLOCK_PENDING,
    from_address: str | None = None,
    gas: int | None = None,
) -> CallDescriptor:
    """
    Build a CallDescriptor targeting the host address.

    Args:
        host_address: Address hosting the orchestration contract (must be
            overridden, otherwise the node calls an empty account and
            returns 0x)
        function: Declared interface of the function to invoke
        args: Positional arguments matching function.inputs
        overrides: Override map for this call
        value: Optional wei attached to the call (payable functions only)
        block: Block context; defaults to the pending view
        from_address: Optional msg.sender
        gas: Optional gas cap for the call

    Raises:
        EncodingError: On arity/type mismatch, a non-overridden target,
            or value sent to a non-payable function
    """
    target = normalize_address(host_address, "host address")

    if target not in overrides:
        raise EncodingError(
            f"Call target {target} has no code override",
            code=ErrorCode.ENCODE_INVALID_ARGUMENT,
            details={"target": target, "overrides": list(overrides)},
        )

    if value is not None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise EncodingError(
                "Call value must be a non-negative int (wei)",
                details={"value": repr(value)},
            )
        if value and not function.payable:
            raise EncodingError(
                f"{function.signature} is not payable but value={value}",
                details={"function": function.signature, "value": value},
            )

    if gas is not None and (isinstance(gas, bool) or not isinstance(gas, int) or gas <= 0):
        raise EncodingError("Gas cap must be a positive int", details={"gas": repr(gas)})

    return CallDescriptor(
        to=target,
        data=encode_call(function, args),
        overrides=overrides,
        block=normalize_block_tag(block),
        value=value,
        from_address=normalize_address(from_address, "from address") if from_address else None,
        gas=gas,
    )
