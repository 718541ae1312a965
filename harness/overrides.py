"""
harness/overrides.py - State override map builders.

Pure functions, no I/O. The resulting OverrideMap is rendered as the
third eth_call parameter:

    {
        "<host address>":   {"code": "<orchestration deployed bytecode>"},
        "<funded account>": {"code": "<unlock deployed bytecode>"}
    }
"""

from core.constants import ErrorCode
from core.exceptions import EncodingError
from core.models import OverrideEntry, OverrideMap


def build_override_map(
    host_address: str,
    host_code: str,
    funded_account: str,
    unlock_code: str,
) -> OverrideMap:
    """
    Build the two-entry override map for a wallet-unlock simulation.

    Args:
        host_address: Fresh random address that hosts the orchestration logic
        host_code: Orchestration contract deployed bytecode
        funded_account: Existing account whose tokens are used
        unlock_code: Unlock contract deployed bytecode

    Returns:
        OverrideMap with exactly two entries

    Raises:
        EncodingError: On malformed input, empty bytecode, or if the host
            address and the funded account are the same
    """
    host = OverrideEntry(address=host_address, code=host_code)
    wallet = OverrideEntry(address=funded_account, code=unlock_code)

    if host.address == wallet.address:
        raise EncodingError(
            "Host address must differ from the funded account",
            code=ErrorCode.ENCODE_DUPLICATE_OVERRIDE,
            details={"address": host.address},
        )

    return OverrideMap([host, wallet])


def build_single_override(address: str, code: str) -> OverrideMap:
    """Build a one-entry override map (host only, no funded account)."""
    return OverrideMap([OverrideEntry(address=address, code=code)])
