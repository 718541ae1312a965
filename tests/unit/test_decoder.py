"""
tests/unit/test_decoder.py - Result decoder tests.
"""

import pytest

from core.constants import ErrorCode, SimulationOutcome
from core.exceptions import DecodingError, SimulatedRevertError
from core.models import SimulationResult
from harness.decoder import decode_result, decode_single

HOST = "0x" + "ab" * 20


def success(return_data):
    return SimulationResult(
        outcome=SimulationOutcome.SUCCESS,
        host_address=HOST,
        block="pending",
        return_data=return_data,
    )


class TestDecodeResult:
    """Test decoding of simulation outcomes."""

    def test_single_uint(self):
        result = success("0x" + hex(99_000_000)[2:].zfill(64))
        assert decode_single(result) == 99_000_000

    def test_multiple_outputs(self):
        result = success("0x" + hex(1)[2:].zfill(64) + hex(2)[2:].zfill(64))
        assert decode_result(result, ("uint256", "uint256")) == (1, 2)

    def test_no_outputs(self):
        assert decode_result(success("0x"), ()) == ()

    def test_revert_raises(self):
        """Decoding a revert raises, it never yields a default value."""
        result = SimulationResult(
            outcome=SimulationOutcome.REVERTED,
            host_address=HOST,
            block="0x112a880",
            revert_data="0x",
            revert_reason="execution reverted",
        )

        with pytest.raises(SimulatedRevertError) as exc_info:
            decode_single(result)

        assert exc_info.value.code == ErrorCode.SIM_REVERT
        assert exc_info.value.revert_reason == "execution reverted"
        assert exc_info.value.details["block"] == "0x112a880"
        assert "execution reverted" in str(exc_info.value)

    def test_revert_without_reason(self):
        result = SimulationResult(
            outcome=SimulationOutcome.REVERTED,
            host_address=HOST,
            block="pending",
        )

        with pytest.raises(SimulatedRevertError, match="no reason given"):
            decode_single(result)

    def test_empty_success_hint(self):
        """An empty success is flagged as a likely missing code override."""
        with pytest.raises(DecodingError) as exc_info:
            decode_single(success("0x"))

        assert exc_info.value.details["host_address"] == HOST
        assert "override" in exc_info.value.details["hint"]

    def test_wrong_width(self):
        with pytest.raises(DecodingError) as exc_info:
            decode_single(success("0x" + "00" * 33))

        assert exc_info.value.code == ErrorCode.DECODE_LENGTH_MISMATCH
        assert "hint" not in exc_info.value.details
