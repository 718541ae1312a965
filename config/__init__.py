"""
Configuration loading utilities for OVERCALL.

Settings are resolved once by the entrypoint and passed explicitly into
the harness; nothing in harness/ reads configuration on its own.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
import yaml
from dotenv import load_dotenv

from core.constants import (
    BLOCK_PENDING,
    DEFAULT_ARTIFACTS_DIR,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_TIMEOUT_SECONDS,
    ErrorCode,
    NODE_RPC_ENV,
)
from core.exceptions import ConfigError, EncodingError
from core.validators import normalize_address

CONFIG_DIR = Path(__file__).parent
DEFAULT_CONFIG_FILE = "simulation.yaml"

HOST_RE = re.compile(r"^[A-Za-z0-9._:-]+$")


def load_yaml(filename: str, config_dir: Path = CONFIG_DIR) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        filename: Name of file in config directory
        config_dir: Directory to look in

    Returns:
        Parsed YAML as dict

    Raises:
        ConfigError: If the file is missing or not a YAML mapping
    """
    filepath = config_dir / filename
    if not filepath.exists():
        raise ConfigError(
            f"Config file not found: {filepath}",
            details={"path": str(filepath)},
        )

    try:
        with open(filepath, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {filepath}: {e}", details={"path": str(filepath)}) from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file is not a mapping: {filepath}", details={"path": str(filepath)})
    return data


@dataclass
class ScenarioConfig:
    """Per-scenario contract names and display units."""
    name: str
    forwarder: str
    wallet: Optional[str] = None
    funded_account: Optional[str] = None
    source_decimals: int = 18
    output_symbol: str = "TOKEN"
    output_decimals: int = 18
    default_amount: str = "0"


@dataclass
class SimulationSettings:
    """Resolved simulation settings."""
    node_rpc: str
    block: str = BLOCK_PENDING
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    check_host_address: bool = False
    artifacts_dir: Path = Path(DEFAULT_ARTIFACTS_DIR)
    source_file: str = "Contracts.sol"
    addresses: Dict[str, str] = field(default_factory=dict)
    scenarios: Dict[str, ScenarioConfig] = field(default_factory=dict)

    def address(self, name_or_address: str) -> str:
        """
        Resolve an address-book name ("DAI_WALLET") or a literal address.

        Raises:
            ConfigError: If the name is unknown and not an address
        """
        value = self.addresses.get(name_or_address, name_or_address)
        try:
            return normalize_address(value, name_or_address)
        except EncodingError as e:
            raise ConfigError(
                f"Unknown address or name: {name_or_address}",
                details=e.details,
            ) from e

    def scenario(self, name: str) -> ScenarioConfig:
        if name not in self.scenarios:
            raise ConfigError(f"Unknown scenario: {name}", details={"scenario": name})
        return self.scenarios[name]


def validate_node_rpc(url: str) -> str:
    """
    Check that a node endpoint is an http(s) URL with a real host.

    Raises:
        ConfigError: If the URL cannot be parsed, is not http(s) or has no valid host
    """
    url = (url or "").strip()
    if not url:
        raise ConfigError(
            f"{NODE_RPC_ENV} is not set; point it at a node JSON-RPC URL",
            code=ErrorCode.CONFIG_MISSING_RPC,
        )
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ConfigError(
            f"{NODE_RPC_ENV} is not a valid URL: {e}",
            code=ErrorCode.CONFIG_MISSING_RPC,
        ) from e
    if parsed.scheme not in ("http", "https"):
        raise ConfigError(
            f"{NODE_RPC_ENV} must be an http(s) URL",
            code=ErrorCode.CONFIG_MISSING_RPC,
            details={"scheme": parsed.scheme},
        )
    # httpx percent-encodes a space in the host instead of rejecting it
    if not HOST_RE.match(parsed.host):
        raise ConfigError(
            f"{NODE_RPC_ENV} has no valid host",
            code=ErrorCode.CONFIG_MISSING_RPC,
            details={"scheme": parsed.scheme, "host": parsed.host},
        )
    return url


def get_node_rpc(env: Optional[Dict[str, str]] = None) -> str:
    """
    Read the node endpoint from NODE_RPC (after loading .env).

    Raises:
        ConfigError: If NODE_RPC is unset or not a valid http(s) URL
    """
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    return validate_node_rpc(env.get(NODE_RPC_ENV, ""))


def _parse_scenarios(data: Dict[str, Any]) -> Dict[str, ScenarioConfig]:
    scenarios = {}
    for name, raw in (data or {}).items():
        if not isinstance(raw, dict) or "forwarder" not in raw:
            raise ConfigError(f"Scenario {name} needs a forwarder", details={"scenario": name})
        scenarios[name] = ScenarioConfig(
            name=name,
            forwarder=raw["forwarder"],
            wallet=raw.get("wallet"),
            funded_account=raw.get("funded_account"),
            source_decimals=int(raw.get("source_decimals", 18)),
            output_symbol=raw.get("output_symbol", "TOKEN"),
            output_decimals=int(raw.get("output_decimals", 18)),
            default_amount=str(raw.get("default_amount", raw.get("default_value", "0"))),
        )
    return scenarios


def load_settings(
    overrides: Optional[Dict[str, Any]] = None,
    config_file: str = DEFAULT_CONFIG_FILE,
    config_dir: Path = CONFIG_DIR,
    env: Optional[Dict[str, str]] = None,
) -> SimulationSettings:
    """
    Load settings: YAML defaults, then explicit overrides (CLI flags).

    Overrides with value None are ignored.

    Raises:
        ConfigError: On a missing or invalid node URL or malformed configuration
    """
    data = load_yaml(config_file, config_dir)
    defaults = dict(data.get("defaults") or {})
    defaults.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        timeout_seconds = float(defaults.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS))
        max_attempts = int(defaults.get("max_attempts", DEFAULT_MAX_ATTEMPTS))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric setting: {e}") from e
    if timeout_seconds <= 0 or max_attempts < 1:
        raise ConfigError(
            "timeout_seconds must be > 0 and max_attempts >= 1",
            details={"timeout_seconds": timeout_seconds, "max_attempts": max_attempts},
        )

    if defaults.get("node_rpc"):
        node_rpc = validate_node_rpc(str(defaults["node_rpc"]))
    else:
        node_rpc = get_node_rpc(env)

    return SimulationSettings(
        node_rpc=node_rpc,
        block=str(defaults.get("block", BLOCK_PENDING)),
        timeout_seconds=timeout_seconds,
        max_attempts=max_attempts,
        check_host_address=bool(defaults.get("check_host_address", False)),
        artifacts_dir=Path(defaults.get("artifacts_dir", DEFAULT_ARTIFACTS_DIR)),
        source_file=str(defaults.get("source_file", "Contracts.sol")),
        addresses={k: str(v) for k, v in (data.get("addresses") or {}).items()},
        scenarios=_parse_scenarios(data.get("scenarios")),
    )
