from __future__ import annotations

from ..chain.rpc import Receipt
from .types import StakingManager


async def unstake(manager: StakingManager) -> Receipt:
    """
    Unstake the signer of manager and withdraw all staked assets.

    Resolves once the transaction is mined.  Before the unlock time the
    Manager reverts with NotUnlocked, which propagates unchanged.
    """
    tx = await manager.withdraw()
    return await tx.wait()
