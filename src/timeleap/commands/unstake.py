"""
Unstake command.

Withdraws everything the signer has staked (tokens and any NFT) once
the lock has expired.  An early call is rejected by the Manager with
NotUnlocked and reported as such.
"""

from __future__ import annotations

from typing import Optional

import click
from eth_account.signers.local import LocalAccount

from .. import sdk
from ..chain.rpc import Receipt, RpcClient
from ..config import Settings
from ..contracts import Manager
from .common import load_account, load_settings, rpc_options, run


async def _unstake(settings: Settings, account: LocalAccount) -> Receipt:
    async with RpcClient(settings.rpc_url, chain_id=settings.chain_id) as rpc:
        manager = Manager(settings.require("manager"), rpc, account)
        click.echo(f"  Staker:  {account.address}")
        click.echo(f"  Manager: {manager.address}")

        receipt = await sdk.unstake(manager)
        for event in manager.events(receipt):
            click.echo(f"  Event:   {event.name} {event.args}")
        return receipt


@click.command()
@rpc_options
def unstake(rpc_url: Optional[str], manager_address: Optional[str]) -> None:
    """Withdraw all staked assets after the unlock time."""
    click.echo("=== Timeleap Unstake ===")
    account = load_account()
    settings = load_settings(rpc_url, manager_address)

    receipt = run(_unstake(settings, account))
    click.secho("SUCCESS: Withdrawal confirmed!", fg="green")
    click.echo(f"  TX: {receipt.tx_hash}")
