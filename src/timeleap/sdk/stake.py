from __future__ import annotations

from ..chain.rpc import Receipt
from .types import StakeParams, StakeWithNftParams, StakingManager


async def stake(manager: StakingManager, params: StakeParams) -> Receipt:
    """
    Stake tokens for the signer of manager.

    The Manager must already be approved to pull params.amount.
    Resolves once the transaction is mined; a revert (for instance
    MinStakeDurationNotMet) propagates as raised by the binding.
    """
    tx = await manager.stake(params.amount, params.duration)
    return await tx.wait()


async def stake_with_nft(manager: StakingManager, params: StakeWithNftParams) -> Receipt:
    """
    Stake tokens plus an NFT for the signer of manager.

    Both the token amount and the NFT must be approved for the Manager.
    """
    tx = await manager.stake_with_nft(params.amount, params.duration, params.nft_id)
    return await tx.wait()
