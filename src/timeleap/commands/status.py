"""Status command - read a staker's position from Stakes and the token."""

from __future__ import annotations

import sys
from typing import Optional

import click

from ..chain.rpc import RpcClient
from ..config import Settings
from ..contracts import ERC20, Manager, Stakes
from ..signer.eth import get_address, load_private_key
from .common import from_base_units, load_settings, rpc_options, run


async def _status(settings: Settings, address: str) -> dict:
    async with RpcClient(settings.rpc_url, chain_id=settings.chain_id) as rpc:
        manager = Manager(settings.require("manager"), rpc)
        stakes = Stakes(settings.stakes or await manager.stakes(), rpc)
        token = ERC20(settings.token or await manager.token(), rpc)

        decimals = await token.decimals()
        has_nft, nft_id = await stakes.get_staked_nft_id(address)
        return {
            "symbol": await token.symbol(),
            "decimals": decimals,
            "staked": await stakes.get_stake_amount(address),
            "balance": await token.balance_of(address),
            "has_nft": has_nft,
            "nft_id": nft_id,
        }


@click.command()
@click.option("--address", default=None, help="Staker address (default: your wallet)")
@rpc_options
def status(address: Optional[str], rpc_url: Optional[str], manager_address: Optional[str]) -> None:
    """Show the staked amount, NFT and token balance of an address."""
    if address is None:
        try:
            address = get_address(load_private_key())
        except ValueError:
            click.secho("ERROR: No wallet found; pass --address.", fg="red")
            sys.exit(1)

    settings = load_settings(rpc_url, manager_address)
    info = run(_status(settings, address))

    symbol, decimals = info["symbol"], info["decimals"]
    click.echo(f"=== Timeleap Status: {address} ===")
    click.echo(f"  Staked:  {from_base_units(info['staked'], decimals)} {symbol}")
    click.echo(f"  Wallet:  {from_base_units(info['balance'], decimals)} {symbol}")
    if info["has_nft"]:
        click.echo(f"  NFT:     #{info['nft_id']} (in custody)")
    else:
        click.echo("  NFT:     none")
