"""
harness/executor.py - Simulation executor.

SIMULATION CONTRACT:
====================

  execute(descriptor) -> SimulationResult

  - Exactly one eth_call(call, block, stateOverride) per execute().
  - Nothing is signed or broadcast; the node evaluates the call on a
    throwaway fork of its state and discards it.
  - A revert of the simulated contract is a *result*
    (SimulationOutcome.REVERTED), not an exception.
  - Anything the node rejects before or outside contract execution
    (malformed override, disallowed address, resource limits) is raised
    as RPCError; transport failures as InfraError; an expired deadline
    as RPCTimeoutError.

Revert classification (what the node puts on the wire):
  - JSON-RPC code 3: geth/erigon/reth "execution reverted" with data
  - message starting with "execution reverted": revert without data
  - EVM halt messages (invalid opcode, out of gas, ...): contract-level
    failures some clients report without code 3
  Revert data is read from error.data as a hex string, or from
  error.data.data / error.data.result for clients that nest it.

====================
"""

import asyncio
import time
from typing import Any

from chains.providers import RPCProvider
from core.constants import (
    DEFAULT_TIMEOUT_SECONDS,
    ErrorCode,
    EVM_HALT_MESSAGES,
    RPC_CODE_EXECUTION_REVERTED,
    SimulationOutcome,
)
from core.exceptions import RPCError, RPCTimeoutError
from core.logging import get_logger, log_simulation
from core.models import CallDescriptor, SimulationResult
from core.validators import HEX_RE
from harness.abi import decode_revert_reason

logger = get_logger(__name__)


def extract_revert_data(rpc_data: Any) -> str | None:
    """Pull a hex revert payload out of a JSON-RPC error.data field."""
    if isinstance(rpc_data, str) and HEX_RE.match(rpc_data):
        return rpc_data.lower()
    if isinstance(rpc_data, dict):
        for key in ("data", "result"):
            nested = rpc_data.get(key)
            if isinstance(nested, str) and HEX_RE.match(nested):
                return nested.lower()
    return None


def is_contract_revert(error: RPCError) -> bool:
    """Tell a revert of the simulated code apart from a node-level rejection."""
    if error.rpc_code == RPC_CODE_EXECUTION_REVERTED:
        return True
    message = error.rpc_message.lower()
    return any(message.startswith(marker) for marker in EVM_HALT_MESSAGES)


class SimulationExecutor:
    """
    Issues one state-overridden eth_call per simulation.

    Holds no per-simulation state: one executor (and one provider) can
    serve any number of concurrent simulations.

    Usage:
        executor = SimulationExecutor(provider, timeout_seconds=10)
        result = await executor.execute(descriptor)
        if result.reverted:
            print(result.revert_reason)
    """

    def __init__(
        self,
        provider: RPCProvider,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.provider = provider
        self.timeout_seconds = timeout_seconds

    async def execute(self, descriptor: CallDescriptor) -> SimulationResult:
        """
        Run the simulated call.

        Returns:
            SimulationResult tagged SUCCESS (return_data set) or
            REVERTED (revert_data / revert_reason set when available)

        Raises:
            RPCTimeoutError: The call did not complete within timeout_seconds
            RPCError: The node rejected the request
            InfraError: No endpoint could be reached
        """
        start = time.monotonic()

        try:
            response = await asyncio.wait_for(
                self.provider.eth_call(*descriptor.to_rpc_params()),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise RPCTimeoutError(
                f"Simulation did not complete within {self.timeout_seconds}s",
                details={"host_address": descriptor.to, "block": descriptor.block},
            ) from e
        except RPCError as e:
            latency_ms = int((time.monotonic() - start) * 1000)
            if not is_contract_revert(e):
                e.details.setdefault("host_address", descriptor.to)
                e.details.setdefault("block", descriptor.block)
                raise

            revert_data = extract_revert_data(e.rpc_data)
            result = SimulationResult(
                outcome=SimulationOutcome.REVERTED,
                host_address=descriptor.to,
                block=descriptor.block,
                revert_data=revert_data,
                revert_reason=decode_revert_reason(revert_data) or e.rpc_message or None,
                latency_ms=latency_ms,
                metadata={"rpc_code": e.rpc_code, "rpc_message": e.rpc_message},
            )
            log_simulation(
                logger,
                host_address=descriptor.to,
                outcome=result.outcome.value,
                block=descriptor.block,
                latency_ms=latency_ms,
                revert_reason=result.revert_reason,
            )
            return result

        return_data = response.result
        if not isinstance(return_data, str) or not HEX_RE.match(return_data):
            raise RPCError(
                "eth_call returned a non-hex result",
                code=ErrorCode.INFRA_BAD_RESPONSE,
                details={"host_address": descriptor.to, "result": repr(return_data)[:80]},
            )

        result = SimulationResult(
            outcome=SimulationOutcome.SUCCESS,
            host_address=descriptor.to,
            block=descriptor.block,
            return_data=return_data.lower(),
            latency_ms=response.latency_ms,
            metadata={"endpoint": response.endpoint_used},
        )
        log_simulation(
            logger,
            host_address=descriptor.to,
            outcome=result.outcome.value,
            block=descriptor.block,
            latency_ms=response.latency_ms,
            return_bytes=(len(return_data) - 2) // 2,
        )
        return result
