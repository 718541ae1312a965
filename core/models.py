"""
core/models.py - Core data models.

Overrides, call descriptors and simulation results. All models are
built fresh for one simulated call and discarded after decoding.
Token quantities are int (smallest unit). NO FLOATS.
"""

from dataclasses import dataclass, field
from collections.abc import Iterator, Mapping
from typing import Any

from core.constants import BLOCK_PENDING, ErrorCode, SimulationOutcome
from core.exceptions import EncodingError
from core.validators import normalize_address, normalize_hex


@dataclass(frozen=True)
class OverrideEntry:
    """Substitute bytecode for one address, valid for a single call."""

    address: str
    code: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address, "override address"))
        object.__setattr__(self, "code", normalize_hex(self.code, "override code", allow_empty=False))

    def to_rpc(self) -> dict[str, str]:
        return {"code": self.code}


class OverrideMap(Mapping[str, OverrideEntry]):
    """
    Address -> OverrideEntry table sent as the eth_call state override.

    Keys are unique case-insensitively; adding an address twice is an
    encoding error rather than a silent replacement.
    """

    def __init__(self, entries: list[OverrideEntry] | None = None):
        self._entries: dict[str, OverrideEntry] = {}
        for entry in entries or []:
            self.add(entry)

    def add(self, entry: OverrideEntry) -> None:
        if entry.address in self._entries:
            raise EncodingError(
                f"Duplicate override for {entry.address}",
                code=ErrorCode.ENCODE_DUPLICATE_OVERRIDE,
                details={"address": entry.address},
            )
        self._entries[entry.address] = entry

    def __getitem__(self, address: str) -> OverrideEntry:
        return self._entries[address.lower()]

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and address.lower() in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"OverrideMap({list(self._entries)})"

    def to_rpc(self) -> dict[str, dict[str, str]]:
        """Render as the third eth_call parameter."""
        return {address: entry.to_rpc() for address, entry in self._entries.items()}


@dataclass(frozen=True)
class CallDescriptor:
    """A virtual call: target, calldata, optional value, block context, overrides."""

    to: str
    data: str
    overrides: OverrideMap
    block: str = BLOCK_PENDING
    value: int | None = None
    from_address: str | None = None
    gas: int | None = None

    def call_object(self) -> dict[str, str]:
        """JSON-RPC call object (first eth_call parameter)."""
        call = {"to": self.to, "data": self.data}
        if self.from_address is not None:
            call["from"] = self.from_address
        if self.value is not None:
            call["value"] = hex(self.value)
        if self.gas is not None:
            call["gas"] = hex(self.gas)
        return call

    def to_rpc_params(self) -> list[Any]:
        """Positional params for eth_call(call, block, stateOverride)."""
        return [self.call_object(), self.block, self.overrides.to_rpc()]


@dataclass(frozen=True)
class SimulationResult:
    """Raw outcome of one simulated call, tagged SUCCESS or REVERTED."""

    outcome: SimulationOutcome
    host_address: str
    block: str
    return_data: str = "0x"
    revert_data: str | None = None
    revert_reason: str | None = None
    latency_ms: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.outcome == SimulationOutcome.SUCCESS

    @property
    def reverted(self) -> bool:
        return self.outcome == SimulationOutcome.REVERTED

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "host_address": self.host_address,
            "block": self.block,
            "return_data": self.return_data,
            "revert_data": self.revert_data,
            "revert_reason": self.revert_reason,
            "latency_ms": self.latency_ms,
            "metadata": self.metadata,
        }
