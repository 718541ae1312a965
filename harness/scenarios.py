"""
harness/scenarios.py - End-to-end simulations.

Wires the pieces together:

    generate_host_address -> build_*_override -> build_call      (pure)
    -> SimulationExecutor.execute                                (one eth_call)
    -> decode_result                                             (pure)

Retry policy: only transport/availability failures (InfraError other
than RPCError, which includes node rate limits) and host address
collisions found by the preflight are retried, and every attempt gets a
freshly generated host address and freshly built override map and
descriptor. A simulated revert is the real outcome at that block and is
never retried; an RPCError means the request itself is wrong and is
never retried either.
"""

from dataclasses import dataclass
from typing import Callable, Sequence

from chains.providers import RPCProvider
from core.constants import BLOCK_PENDING, DEFAULT_MAX_ATTEMPTS, DEFAULT_TIMEOUT_SECONDS, ErrorCode
from core.exceptions import EncodingError, InfraError, RPCError
from core.logging import get_logger
from core.models import CallDescriptor, SimulationResult
from harness.addresses import ensure_unused_address, generate_host_address
from harness.artifacts import ContractArtifact
from harness.decoder import decode_result
from harness.executor import SimulationExecutor
from harness.overrides import build_override_map, build_single_override
from harness.request import build_call

logger = get_logger(__name__)

DescriptorFactory = Callable[[str], CallDescriptor]


@dataclass
class DecodedRun:
    """Decoded values of a successful simulation plus its raw result."""
    values: tuple
    result: SimulationResult
    attempts: int

    @property
    def value(self):
        """The single return value (for one-output functions)."""
        (value,) = self.values
        return value


class SimulationRunner:
    """
    Runs a simulation with per-attempt host addresses.

    Usage:
        runner = SimulationRunner(provider, timeout_seconds=10, max_attempts=3)
        run = await runner.run(lambda host: build_call(host, ...), ("uint256",))
    """

    def __init__(
        self,
        provider: RPCProvider,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        check_host_address: bool = False,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.provider = provider
        self.executor = SimulationExecutor(provider, timeout_seconds=timeout_seconds)
        self.max_attempts = max_attempts
        self.check_host_address = check_host_address

    async def run(
        self,
        build_descriptor: DescriptorFactory,
        output_types: Sequence[str],
    ) -> DecodedRun:
        """
        Build, execute and decode one simulation.

        Args:
            build_descriptor: Called with a fresh host address for every
                attempt; returns the CallDescriptor to execute
            output_types: Declared return types of the invoked function

        Raises:
            SimulatedRevertError: The simulated contract reverted
            DecodingError: The result does not match output_types
            EncodingError: The descriptor could not be built
            RPCError: The node rejected the request
            InfraError: Transport failed on every attempt

        The error raised after the last attempt carries details["attempts"].
        """
        attempt = 0

        while True:
            attempt += 1
            host_address = generate_host_address()
            descriptor = build_descriptor(host_address)

            try:
                if self.check_host_address:
                    await ensure_unused_address(self.provider, host_address, descriptor.block)
                result = await self.executor.execute(descriptor)
            except RPCError:
                raise
            except (InfraError, EncodingError) as e:
                if isinstance(e, EncodingError) and e.code != ErrorCode.HOST_ADDRESS_IN_USE:
                    raise
                if attempt >= self.max_attempts:
                    e.details["attempts"] = attempt
                    raise
                logger.warning(
                    f"Simulation attempt {attempt}/{self.max_attempts} failed",
                    extra={"context": {
                        "attempt": attempt,
                        "error_code": e.code.value,
                        "error": e.message,
                        "host_address": host_address,
                    }},
                )
                continue

            return DecodedRun(
                values=decode_result(result, output_types),
                result=result,
                attempts=attempt,
            )


async def simulate_wallet_unlock_swap(
    runner: SimulationRunner,
    forwarder: ContractArtifact,
    wallet: ContractArtifact,
    funded_account: str,
    amount: int,
    block: str | int = BLOCK_PENDING,
    function_name: str = "swap",
) -> DecodedRun:
    """
    Simulate the two-override, two-leg swap.

    The forwarder is placed at a random host address and the funded
    account's code is replaced by the unlock wallet; the forwarder then
    pulls `amount` of the source token from the funded account and swaps
    it source -> intermediate -> destination.

    Returns:
        DecodedRun whose value is the destination token amount
    """
    swap = forwarder.function(function_name)

    def build(host_address: str) -> CallDescriptor:
        overrides = build_override_map(
            host_address=host_address,
            host_code=forwarder.deployed_bytecode,
            funded_account=funded_account,
            unlock_code=wallet.deployed_bytecode,
        )
        return build_call(host_address, swap, [funded_account, amount], overrides, block=block)

    return await runner.run(build, swap.outputs)


async def simulate_eth_swap(
    runner: SimulationRunner,
    forwarder: ContractArtifact,
    value: int,
    block: str | int = BLOCK_PENDING,
    function_name: str = "swap",
) -> DecodedRun:
    """
    Simulate the single-override payable swap.

    Only the host address is overridden; the call itself carries `value`
    wei, which the forwarder swaps for tokens.

    Returns:
        DecodedRun whose value is the token amount received
    """
    swap = forwarder.function(function_name)

    def build(host_address: str) -> CallDescriptor:
        overrides = build_single_override(host_address, forwarder.deployed_bytecode)
        return build_call(host_address, swap, [], overrides, value=value, block=block)

    return await runner.run(build, swap.outputs)
