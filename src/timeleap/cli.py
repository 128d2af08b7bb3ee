"""
Timeleap CLI

Command-line interface for the Timeleap staking contracts.

Commands:
  init       - Create a local wallet
  whoami     - Show current wallet address
  stake      - Stake tokens for a lock duration
  stake-nft  - Stake tokens plus an NFT
  unstake    - Withdraw after the unlock time
  status     - Show a staker's position
"""

from __future__ import annotations

import logging
import sys

import click

from .signer.eth import TIMELEAP_ENV, generate_eoa, get_address, load_private_key, save_private_key


VERSION = "0.1.0"


@click.group()
@click.version_option(version=VERSION, prog_name="timeleap")
@click.option("-v", "--verbose", is_flag=True, help="Log RPC traffic and transactions")
def cli(verbose: bool) -> None:
    """Timeleap - stake tokens and NFTs on the Manager contract."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


from .commands.stake import stake, stake_nft
from .commands.status import status
from .commands.unstake import unstake

cli.add_command(stake)
cli.add_command(stake_nft)
cli.add_command(unstake)
cli.add_command(status)


# ============ Identity ============


@cli.command()
def init() -> None:
    """Create a wallet in ~/.timeleap/.env if none exists."""
    try:
        address = get_address(load_private_key())
        click.echo(f"Wallet already exists: {address}")
        return
    except ValueError:
        pass

    private_key, address = generate_eoa()
    env_path = save_private_key(private_key, TIMELEAP_ENV)
    click.secho(f"Created wallet {address}", fg="green")
    click.echo(f"  Key saved to {env_path}")


@cli.command()
def whoami() -> None:
    """Show current wallet identity."""
    try:
        click.echo(f"Address: {get_address(load_private_key())}")
    except ValueError:
        click.echo("No wallet found.")
        click.echo("Run 'timeleap init' to create one.")
        sys.exit(1)


def main() -> None:
    """Timeleap CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
