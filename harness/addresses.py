"""
harness/addresses.py - Host address selection.

The orchestration contract is "deployed" by override at an address that
nothing on chain uses. The address is drawn from the OS CSPRNG
(secrets.token_bytes, 160 bits of entropy), so the chance of shadowing a
real contract or a future CREATE/CREATE2 deployment is negligible.

A host address is generated per call and never cached or reused.
"""

import secrets

from chains.providers import RPCProvider
from core.constants import ADDRESS_BYTES, BLOCK_PENDING, ErrorCode
from core.exceptions import EncodingError
from core.logging import get_logger
from core.validators import normalize_address

logger = get_logger(__name__)

# Precompiles live at 0x01..0xff; an address below this is never used as host
_RESERVED_ADDRESS_CEILING = 0x10000


def generate_host_address() -> str:
    """
    Generate a fresh, unpredictable host address.

    Returns:
        Lowercase 0x-prefixed 20-byte hex address
    """
    while True:
        raw = secrets.token_bytes(ADDRESS_BYTES)
        if int.from_bytes(raw, "big") >= _RESERVED_ADDRESS_CEILING:
            return "0x" + raw.hex()


async def ensure_unused_address(
    provider: RPCProvider,
    address: str,
    block: str = BLOCK_PENDING,
) -> None:
    """
    Verify on chain that an address has no code and has never sent a tx.

    Optional preflight before a simulation: a fresh random address always
    passes, so this only catches a caller-supplied host address that
    collides with a live account.

    Raises:
        EncodingError: If the address already hosts code or has a nonce
    """
    address = normalize_address(address, "host address")

    code = await provider.get_code(address, block)
    nonce = await provider.get_transaction_count(address, block)

    if code not in ("0x", "0x0", "") or nonce != 0:
        raise EncodingError(
            f"Host address {address} is already in use on chain",
            code=ErrorCode.HOST_ADDRESS_IN_USE,
            details={
                "address": address,
                "code_bytes": max(len(code) - 2, 0) // 2,
                "nonce": nonce,
                "block": block,
            },
        )

    logger.debug(
        "Host address unused",
        extra={"context": {"host_address": address, "block": block}},
    )
