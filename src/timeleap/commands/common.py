"""Helpers shared by the staking commands."""

from __future__ import annotations

import asyncio
import re
import sys
from decimal import Decimal, InvalidOperation
from typing import Any, Coroutine, Optional, TypeVar

import click
import httpx
from eth_account.signers.local import LocalAccount

from ..chain.rpc import ChainError, ContractRevertError
from ..config import ConfigError, Settings
from ..signer.eth import get_account, load_private_key

T = TypeVar("T")

_DURATION_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400}
_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)


def parse_duration(value: str) -> int:
    """
    Parse a lock duration into seconds.

    Accepts plain seconds ("7776000") or a number with an s/m/h/d suffix
    ("90d", "12h").
    """
    match = _DURATION_RE.match(value)
    if not match:
        raise click.BadParameter(
            f"{value!r} is not a duration; use seconds or e.g. 90d, 12h, 30m"
        )
    number, unit = match.groups()
    return int(number) * _DURATION_UNITS[(unit or "s").lower()]


def to_base_units(amount: str, decimals: int) -> int:
    """Convert a human token amount ("12.5") to base units."""
    try:
        value = Decimal(amount)
    except InvalidOperation:
        raise click.BadParameter(f"{amount!r} is not a number")
    if not value.is_finite():
        raise click.BadParameter(f"{amount!r} is not a number")

    raw = value * (Decimal(10) ** decimals)
    if raw != raw.to_integral_value():
        raise click.BadParameter(f"{amount} has more than {decimals} decimal places")
    if raw <= 0:
        raise click.BadParameter("Amount must be positive")
    return int(raw)


def from_base_units(raw: int, decimals: int) -> str:
    return f"{Decimal(raw) / (Decimal(10) ** decimals):f}"


def rpc_options(func: Any) -> Any:
    """--rpc-url and --manager options, defaulting to the environment."""
    func = click.option(
        "--manager",
        "manager_address",
        envvar="MANAGER_ADDRESS",
        default=None,
        help="Manager contract address",
    )(func)
    func = click.option(
        "--rpc-url",
        envvar="TIMELEAP_RPC_URL",
        default=None,
        help="JSON-RPC endpoint of the node",
    )(func)
    return func


def load_settings(rpc_url: Optional[str], manager_address: Optional[str]) -> Settings:
    """Settings from the environment with CLI overrides, or exit on bad values."""
    try:
        settings = Settings.from_env()
    except ConfigError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(exc.exit_code)
    return settings.with_overrides(rpc_url=rpc_url, manager=manager_address)


def load_account() -> LocalAccount:
    """Load the signing account or exit with a hint."""
    try:
        return get_account(load_private_key())
    except ValueError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        click.echo("Run 'timeleap init' first.")
        sys.exit(1)


def run(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run a command coroutine, reporting chain failures and exiting non-zero.

    Revert reasons are printed as decoded from the contract.
    """
    try:
        return asyncio.run(coro)
    except ContractRevertError as exc:
        click.secho(f"REVERTED: {exc.reason}", fg="red")
        sys.exit(exc.exit_code)
    except (ChainError, ConfigError) as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(exc.exit_code)
    except httpx.HTTPError as exc:
        click.secho(f"ERROR: node request failed: {exc}", fg="red")
        sys.exit(1)
