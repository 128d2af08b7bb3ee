"""
Bindings for the staking system: Manager, Stakes, Bank, Repository.

Manager is the entry point.  It pulls the staked ERC-20 amount (and an
optional ERC-721) into the Bank and records the position in Stakes.  Bank
and Stakes only accept calls from the implementation registered in the
Repository.
"""

from __future__ import annotations

from typing import Optional

from ..chain.tx import PendingTransaction
from .base import Contract


class Manager(Contract):
    """
    Staking entry point.

    Events: Staked, StakedWithNft, Withdrawn, WithdrawnWithNft.
    Custom errors: MinStakeDurationNotMet(), NotUnlocked().

    Each state-changing method has two overloads on-chain: one acting for
    the signer, and an operator form taking the staker address first.
    Pass staker= to use the operator form.
    """

    CONTRACT_NAME = "Manager"

    async def stake(
        self,
        amount: int,
        duration: int,
        staker: Optional[str] = None,
        gas_limit: Optional[int] = None,
    ) -> PendingTransaction:
        if staker is None:
            return await self.transact("stake", amount, duration, gas_limit=gas_limit)
        return await self.transact("stake", staker, amount, duration, gas_limit=gas_limit)

    async def stake_with_nft(
        self,
        amount: int,
        duration: int,
        nft_id: int,
        staker: Optional[str] = None,
        gas_limit: Optional[int] = None,
    ) -> PendingTransaction:
        if staker is None:
            return await self.transact(
                "stakeWithNft", amount, duration, nft_id, gas_limit=gas_limit
            )
        return await self.transact(
            "stakeWithNft", staker, amount, duration, nft_id, gas_limit=gas_limit
        )

    async def withdraw(
        self,
        staker: Optional[str] = None,
        gas_limit: Optional[int] = None,
    ) -> PendingTransaction:
        if staker is None:
            return await self.transact("withdraw", gas_limit=gas_limit)
        return await self.transact("withdraw", staker, gas_limit=gas_limit)

    async def min_stake_duration(self) -> int:
        return await self.call("MIN_STAKE_DURATION")

    async def token(self) -> str:
        return await self.call("token")

    async def nft(self) -> str:
        return await self.call("nft")

    async def stakes(self) -> str:
        return await self.call("stakes")

    async def bank(self) -> str:
        return await self.call("bank")


class Stakes(Contract):
    """Per-user stake records."""

    CONTRACT_NAME = "Stakes"

    async def get_stake_amount(self, user: str) -> int:
        return await self.call("getStakeAmount", user)

    async def get_staked_nft_id(self, user: str) -> tuple[bool, int]:
        """(has_nft, nft_id) for a user."""
        has_nft, nft_id = await self.call("getStakedNftId", user)
        return bool(has_nft), int(nft_id)


class Bank(Contract):
    """Custodian of staked assets; its balances are read on the token contracts."""

    CONTRACT_NAME = "Bank"


class Repository(Contract):
    """Registry of the implementation allowed to drive Bank and Stakes."""

    CONTRACT_NAME = "Repository"

    async def upgrade(self, implementation: str) -> PendingTransaction:
        return await self.transact("upgrade", implementation)

    async def implementation(self) -> str:
        return await self.call("implementation")
