"""
chains/block.py - Block context resolution and pinning.

Pins a symbolic block tag to a concrete block number, so repeated
simulations replay against exactly the same ledger state.
"""

from chains.providers import RPCProvider
from core.constants import BLOCK_EARLIEST, SYMBOLIC_BLOCK_TAGS
from core.exceptions import InfraError
from core.logging import get_logger
from core.validators import normalize_block_tag

logger = get_logger(__name__)


async def pin_block(provider: RPCProvider, block: str | int) -> str:
    """
    Resolve a block context to a fixed hex block number.

    "latest", "safe", "finalized" are resolved through eth_getBlockByNumber;
    "pending" is kept as is (it has no stable number) and "earliest" is 0x0.
    Numbers pass through unchanged.

    Raises:
        EncodingError: If the block is malformed
        InfraError: If the node cannot resolve the tag
    """
    tag = normalize_block_tag(block)

    if tag not in SYMBOLIC_BLOCK_TAGS:
        return tag
    if tag == BLOCK_EARLIEST:
        return "0x0"
    if tag == "pending":
        logger.warning(
            "Pending block context cannot be pinned; replays may differ",
            extra={"context": {"block": tag}},
        )
        return tag

    response = await provider.call("eth_getBlockByNumber", [tag, False])
    if not isinstance(response.result, dict) or "number" not in response.result:
        raise InfraError(
            f"Node could not resolve block tag {tag!r}",
            details={"block": tag},
        )

    pinned = hex(int(response.result["number"], 16))
    logger.info(
        "Pinned block context",
        extra={"context": {"block": tag, "pinned": pinned}},
    )
    return pinned
