"""
Stake commands.

Flow:
1. Load local signer and settings
2. Resolve token (and NFT) from the Manager unless configured
3. Optionally approve the Manager for the amount / NFT
4. Send Manager.stake / stakeWithNft and wait for it to be mined
"""

from __future__ import annotations

import click
from eth_account.signers.local import LocalAccount

from .. import sdk
from ..chain.rpc import Receipt, RpcClient
from ..config import Settings
from ..contracts import ERC20, ERC721, Manager
from .common import load_account, load_settings, parse_duration, rpc_options, run, to_base_units


async def _approve_token(token: ERC20, manager: Manager, raw_amount: int) -> None:
    click.echo(f"  Approving {raw_amount} base units for the Manager...")
    await (await token.approve(manager.address, raw_amount)).wait()


async def _stake(
    settings: Settings,
    account: LocalAccount,
    amount: str,
    duration: int,
    approve: bool,
    nft_id: int | None = None,
) -> Receipt:
    async with RpcClient(settings.rpc_url, chain_id=settings.chain_id) as rpc:
        manager = Manager(settings.require("manager"), rpc, account)
        token = ERC20(settings.token or await manager.token(), rpc, account)
        raw_amount = to_base_units(amount, await token.decimals())

        click.echo(f"  Staker:   {account.address}")
        click.echo(f"  Manager:  {manager.address}")
        click.echo(f"  Amount:   {amount} ({raw_amount} base units)")
        click.echo(f"  Duration: {duration}s")

        if approve:
            await _approve_token(token, manager, raw_amount)

        if nft_id is None:
            receipt = await sdk.stake(manager, sdk.StakeParams(raw_amount, duration))
        else:
            click.echo(f"  NFT:      #{nft_id}")
            if approve:
                nft = ERC721(settings.nft or await manager.nft(), rpc, account)
                click.echo(f"  Approving NFT #{nft_id} for the Manager...")
                await (await nft.approve(manager.address, nft_id)).wait()
            receipt = await sdk.stake_with_nft(
                manager, sdk.StakeWithNftParams(raw_amount, duration, nft_id)
            )

        for event in manager.events(receipt):
            click.echo(f"  Event:    {event.name} {event.args}")
        return receipt


@click.command()
@click.option("--amount", required=True, help="Amount in token units (e.g. 50 or 12.5)")
@click.option("--duration", required=True, help="Lock duration: seconds, or e.g. 90d / 12h")
@click.option(
    "--approve/--no-approve",
    default=True,
    help="Approve the Manager for the amount before staking",
)
@rpc_options
def stake(amount: str, duration: str, approve: bool, rpc_url: str | None, manager_address: str | None) -> None:
    """Stake tokens for a lock duration."""
    click.echo("=== Timeleap Stake ===")
    seconds = parse_duration(duration)
    account = load_account()
    settings = load_settings(rpc_url, manager_address)

    receipt = run(_stake(settings, account, amount, seconds, approve))
    click.secho("SUCCESS: Stake confirmed!", fg="green")
    click.echo(f"  TX: {receipt.tx_hash}")


@click.command("stake-nft")
@click.option("--amount", required=True, help="Amount in token units (e.g. 50 or 12.5)")
@click.option("--duration", required=True, help="Lock duration: seconds, or e.g. 90d / 12h")
@click.option("--nft-id", required=True, type=int, help="ERC-721 token id to pledge")
@click.option(
    "--approve/--no-approve",
    default=True,
    help="Approve the Manager for the amount and NFT before staking",
)
@rpc_options
def stake_nft(
    amount: str,
    duration: str,
    nft_id: int,
    approve: bool,
    rpc_url: str | None,
    manager_address: str | None,
) -> None:
    """Stake tokens together with an NFT."""
    click.echo("=== Timeleap Stake (with NFT) ===")
    seconds = parse_duration(duration)
    account = load_account()
    settings = load_settings(rpc_url, manager_address)

    receipt = run(_stake(settings, account, amount, seconds, approve, nft_id=nft_id))
    click.secho("SUCCESS: Stake with NFT confirmed!", fg="green")
    click.echo(f"  TX: {receipt.tx_hash}")
