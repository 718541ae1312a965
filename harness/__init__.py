"""
harness/ - State-override simulation harness.

Modules:
- abi: Static ABI encoding/decoding and FunctionSpec
- addresses: Host address generation and collision preflight
- overrides: Override map builders
- request: Call descriptor builder
- executor: One eth_call per simulation, revert vs node error
- decoder: Strict result decoding
- artifacts: Foundry artifact loading
- scenarios: End-to-end simulations with per-attempt host addresses
"""

from harness.abi import (
    FunctionSpec,
    decode_revert_reason,
    decode_values,
    encode_call,
)
from harness.addresses import ensure_unused_address, generate_host_address
from harness.artifacts import ContractArtifact, artifact_path, load_artifact
from harness.decoder import decode_result, decode_single
from harness.executor import SimulationExecutor
from harness.overrides import build_override_map, build_single_override
from harness.request import build_call
from harness.scenarios import (
    DecodedRun,
    SimulationRunner,
    simulate_eth_swap,
    simulate_wallet_unlock_swap,
)

__all__ = [
    # ABI
    "FunctionSpec",
    "decode_revert_reason",
    "decode_values",
    "encode_call",
    # Addresses / overrides / request
    "ensure_unused_address",
    "generate_host_address",
    "build_override_map",
    "build_single_override",
    "build_call",
    # Execution
    "SimulationExecutor",
    "decode_result",
    "decode_single",
    # Artifacts
    "ContractArtifact",
    "artifact_path",
    "load_artifact",
    # Scenarios
    "DecodedRun",
    "SimulationRunner",
    "simulate_eth_swap",
    "simulate_wallet_unlock_swap",
]
