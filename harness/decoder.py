"""
harness/decoder.py - Result decoder.

Turns a SimulationResult into typed values per the declared output
types. Fails loudly: a revert raises SimulatedRevertError and a payload
of the wrong width raises DecodingError. Nothing is padded, truncated
or defaulted.
"""

from typing import Sequence

from core.exceptions import DecodingError, SimulatedRevertError
from core.models import SimulationResult
from harness.abi import decode_values


def decode_result(result: SimulationResult, output_types: Sequence[str]) -> tuple:
    """
    Decode the success bytes of a simulation.

    Args:
        result: Outcome from SimulationExecutor.execute
        output_types: Declared return types, e.g. ("uint256",)

    Returns:
        Tuple of decoded values, one per output type

    Raises:
        SimulatedRevertError: If the simulated call reverted
        DecodingError: If the bytes do not match the declared types
    """
    if result.reverted:
        raise SimulatedRevertError(
            f"Simulated call reverted: {result.revert_reason or 'no reason given'}",
            revert_data=result.revert_data,
            revert_reason=result.revert_reason,
            details={"host_address": result.host_address, "block": result.block},
        )

    try:
        return decode_values(output_types, result.return_data)
    except DecodingError as e:
        e.details.setdefault("host_address", result.host_address)
        if result.return_data == "0x":
            # An empty success is what a code-less target returns
            e.details.setdefault("hint", "empty return data: host address override not applied?")
        raise


def decode_single(result: SimulationResult, output_type: str = "uint256"):
    """Decode a result declared to return exactly one value."""
    (value,) = decode_result(result, (output_type,))
    return value
