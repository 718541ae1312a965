"""
harness/artifacts.py - Compiled contract artifacts.

Reads Foundry build output (out/<File>.sol/<Contract>.json). Only three
fields are used:

    abi                       -> argument/return types per function
    deployedBytecode.object   -> runtime code placed by state override
    methodIdentifiers         -> "swap(address,uint256)": "<selector>"

Selectors come from the compiler, never from reflection, and every
function the harness calls is turned into a static FunctionSpec.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from core.constants import ErrorCode
from core.exceptions import ConfigError, EncodingError
from core.validators import normalize_hex
from harness.abi import FunctionSpec


@dataclass(frozen=True)
class ContractArtifact:
    """Deployed bytecode plus the declared interface of one contract."""
    name: str
    deployed_bytecode: str
    abi: list[dict[str, Any]] = field(default_factory=list)
    method_identifiers: dict[str, str] = field(default_factory=dict)

    def function(self, name: str) -> FunctionSpec:
        """
        Build the FunctionSpec for a function by name.

        Raises:
            ConfigError: If the function is missing, overloaded, or the
                artifact has no selector for it
            EncodingError: If it uses dynamic (unsupported) types
        """
        entries = [
            e for e in self.abi
            if e.get("type") == "function" and e.get("name") == name
        ]
        if not entries:
            raise ConfigError(
                f"{self.name} has no function {name!r}",
                code=ErrorCode.CONFIG_MISSING_ARTIFACT,
                details={"contract": self.name, "function": name},
            )
        if len(entries) > 1:
            raise ConfigError(
                f"{self.name}.{name} is overloaded; declare a FunctionSpec explicitly",
                details={"contract": self.name, "function": name},
            )

        entry = entries[0]
        # Contract-typed params already appear as "address" in the abi
        inputs = tuple(p.get("type", "") for p in entry.get("inputs", []))
        outputs = tuple(p.get("type", "") for p in entry.get("outputs", []))
        signature = f"{name}({','.join(inputs)})"

        selector = self.method_identifiers.get(signature)
        if selector is None:
            raise ConfigError(
                f"{self.name} artifact has no method identifier for {signature}",
                code=ErrorCode.CONFIG_MISSING_ARTIFACT,
                details={"contract": self.name, "signature": signature},
            )

        return FunctionSpec(
            name=name,
            inputs=inputs,
            outputs=outputs,
            selector=selector,
            payable=entry.get("stateMutability") == "payable",
        )


def parse_artifact(name: str, data: dict[str, Any]) -> ContractArtifact:
    """
    Build a ContractArtifact from parsed artifact JSON.

    Accepts both Foundry ({"deployedBytecode": {"object": ...}}) and
    flat ({"deployedBytecode": "0x..."}) layouts.

    Raises:
        ConfigError: If the runtime bytecode is missing or not hex
    """
    bytecode = data.get("deployedBytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")

    try:
        code = normalize_hex(bytecode, "deployedBytecode", allow_empty=False)
    except EncodingError as e:
        raise ConfigError(
            f"Artifact {name} has no usable deployed bytecode",
            code=ErrorCode.CONFIG_MISSING_ARTIFACT,
            details={"contract": name, **e.details},
        ) from e

    abi = data.get("abi") or []
    if not isinstance(abi, list):
        raise ConfigError(f"Artifact {name} has a malformed abi", details={"contract": name})

    return ContractArtifact(
        name=name,
        deployed_bytecode=code,
        abi=abi,
        method_identifiers=dict(data.get("methodIdentifiers") or {}),
    )


def load_artifact(path: str | Path) -> ContractArtifact:
    """
    Load one artifact file.

    Raises:
        ConfigError: If the file is missing, not JSON, or has no bytecode
    """
    filepath = Path(path)
    if not filepath.is_file():
        raise ConfigError(
            f"Artifact not found: {filepath}",
            code=ErrorCode.CONFIG_MISSING_ARTIFACT,
            details={"path": str(filepath)},
        )

    try:
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(
            f"Artifact unreadable: {filepath}: {e}",
            code=ErrorCode.CONFIG_MISSING_ARTIFACT,
            details={"path": str(filepath)},
        ) from e

    if not isinstance(data, dict):
        raise ConfigError(f"Artifact is not a JSON object: {filepath}", details={"path": str(filepath)})

    return parse_artifact(filepath.stem, data)


def artifact_path(artifacts_dir: str | Path, source_file: str, contract: str) -> Path:
    """Foundry layout: <out>/<Source>.sol/<Contract>.json."""
    return Path(artifacts_dir) / source_file / f"{contract}.json"
