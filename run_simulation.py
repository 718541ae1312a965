#!/usr/bin/env python3
"""
run_simulation.py - CLI entrypoint for state-override simulations.

Usage:
    NODE_RPC=https://... python run_simulation.py unlock-swap --amount 100
    python run_simulation.py unlock-swap --amount 250 --block 18500000
    python run_simulation.py eth-swap --value 1

Exit codes:
    0 success, 1 simulated revert, 2 configuration/encoding/decoding error,
    3 transport/node error
"""

import asyncio
import sys
from typing import Any, Awaitable, Callable

import click

from chains.block import pin_block
from chains.providers import RPCProvider
from config import SimulationSettings, load_settings
from core.constants import SERVICE_NAME, SERVICE_VERSION
from core.exceptions import (
    ConfigError,
    EncodingError,
    InfraError,
    OvercallError,
    SimulatedRevertError,
)
from core.format_units import format_units, parse_units
from core.logging import get_logger, log_error, set_global_context, setup_logging
from harness.artifacts import artifact_path, load_artifact
from harness.scenarios import (
    DecodedRun,
    SimulationRunner,
    simulate_eth_swap,
    simulate_wallet_unlock_swap,
)

logger = get_logger("overcall.cli")

EXIT_REVERT = 1
EXIT_USAGE = 2
EXIT_INFRA = 3


def exit_code_for(error: OvercallError) -> int:
    """Map an error kind to a process exit code."""
    if isinstance(error, SimulatedRevertError):
        return EXIT_REVERT
    if isinstance(error, InfraError):
        return EXIT_INFRA
    return EXIT_USAGE


async def _run_with_provider(
    settings: SimulationSettings,
    pin: bool,
    simulate: Callable[[SimulationRunner, str], Awaitable[DecodedRun]],
) -> DecodedRun:
    async with RPCProvider([settings.node_rpc], timeout_seconds=settings.timeout_seconds) as provider:
        block = await pin_block(provider, settings.block) if pin else settings.block
        runner = SimulationRunner(
            provider,
            timeout_seconds=settings.timeout_seconds,
            max_attempts=settings.max_attempts,
            check_host_address=settings.check_host_address,
        )
        return await simulate(runner, block)


def _execute(
    settings: SimulationSettings,
    pin: bool,
    simulate: Callable[[SimulationRunner, str], Awaitable[DecodedRun]],
    label: str,
    decimals: int,
) -> None:
    try:
        run = asyncio.run(_run_with_provider(settings, pin, simulate))
    except OvercallError as e:
        log_error(logger, e.code.value, e.message, details=e.details)
        if isinstance(e, SimulatedRevertError):
            click.echo(f"Simulation reverted: {e.revert_reason or 'no reason given'}", err=True)
        else:
            click.echo(f"Simulation failed: {e}", err=True)
        sys.exit(exit_code_for(e))

    logger.info(
        "Simulation complete",
        extra={"context": {
            "host_address": run.result.host_address,
            "block": run.result.block,
            "attempts": run.attempts,
            "raw_value": str(run.value),
        }},
    )
    click.echo(f"{label}: {format_units(run.value, decimals)}")


@click.group()
@click.option("--rpc", default=None, help="Node JSON-RPC URL (default: $NODE_RPC)")
@click.option("--block", "-b", default=None, help="Block tag or number (default: pending)")
@click.option("--pin/--no-pin", default=False, help="Resolve a symbolic block tag to a fixed number first")
@click.option("--timeout", "-t", default=None, type=float, help="Per-call timeout in seconds")
@click.option("--attempts", default=None, type=int, help="Max attempts on transport failures")
@click.option("--check-host/--no-check-host", default=None, help="Verify the host address is unused on chain")
@click.option("--artifacts-dir", default=None, type=click.Path(file_okay=False), help="Foundry out/ directory")
@click.option(
    "--log-level",
    "-l",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
@click.option("--json-logs/--no-json-logs", default=False, help="Use JSON log format")
@click.pass_context
def cli(
    ctx: click.Context,
    rpc: str | None,
    block: str | None,
    pin: bool,
    timeout: float | None,
    attempts: int | None,
    check_host: bool | None,
    artifacts_dir: str | None,
    log_level: str,
    json_logs: bool,
) -> None:
    """
    OVERCALL - simulate multi-step token interactions with eth_call overrides.

    Nothing is deployed, signed or broadcast.
    """
    setup_logging(level=log_level, json_output=json_logs)
    set_global_context(service=SERVICE_NAME, version=SERVICE_VERSION)

    overrides: dict[str, Any] = {
        "node_rpc": rpc,
        "block": block,
        "timeout_seconds": timeout,
        "max_attempts": attempts,
        "check_host_address": check_host,
        "artifacts_dir": artifacts_dir,
    }
    try:
        settings = load_settings(overrides)
    except ConfigError as e:
        log_error(logger, e.code.value, e.message, details=e.details)
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(EXIT_USAGE)

    ctx.obj = {"settings": settings, "pin": pin}


def _load(settings: SimulationSettings, contract: str):
    path = artifact_path(settings.artifacts_dir, settings.source_file, contract)
    return load_artifact(path)


@cli.command("unlock-swap")
@click.option("--amount", "-a", default=None, help="Source token amount, in whole tokens")
@click.option("--wallet", "-w", default=None, help="Funded account (address or address-book name)")
@click.pass_context
def unlock_swap(ctx: click.Context, amount: str | None, wallet: str | None) -> None:
    """Two-leg swap funded by an unlocked wallet (two overrides)."""
    settings: SimulationSettings = ctx.obj["settings"]

    try:
        scenario = settings.scenario("wallet_unlock_swap")
        funded_account = settings.address(wallet or scenario.funded_account or "")
        raw_amount = parse_units(amount or scenario.default_amount, scenario.source_decimals)
        forwarder = _load(settings, scenario.forwarder)
        unlocked = _load(settings, scenario.wallet or "UnlockedWallet")
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--amount") from e
    except (ConfigError, EncodingError) as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(EXIT_USAGE)

    logger.info(
        "Simulating wallet unlock swap",
        extra={"context": {
            "funded_account": funded_account,
            "amount": str(raw_amount),
            "block": settings.block,
        }},
    )

    _execute(
        settings,
        ctx.obj["pin"],
        lambda runner, block: simulate_wallet_unlock_swap(
            runner, forwarder, unlocked, funded_account, raw_amount, block=block,
        ),
        label=f"{scenario.output_symbol} received from swap",
        decimals=scenario.output_decimals,
    )


@cli.command("eth-swap")
@click.option("--value", "-v", default=None, help="ETH attached to the call, in ether")
@click.pass_context
def eth_swap(ctx: click.Context, value: str | None) -> None:
    """Swap ETH attached to the call (one override)."""
    settings: SimulationSettings = ctx.obj["settings"]

    try:
        scenario = settings.scenario("eth_swap")
        raw_value = parse_units(value or scenario.default_amount, 18)
        forwarder = _load(settings, scenario.forwarder)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--value") from e
    except (ConfigError, EncodingError) as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(EXIT_USAGE)

    _execute(
        settings,
        ctx.obj["pin"],
        lambda runner, block: simulate_eth_swap(runner, forwarder, raw_value, block=block),
        label=f"{scenario.output_symbol} received from swap",
        decimals=scenario.output_decimals,
    )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
