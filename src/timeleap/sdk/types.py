from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from ..chain.tx import PendingTransaction


@dataclass(frozen=True)
class StakeParams:
    """
    Attributes:
        amount: Token amount in base units
        duration: Lock duration in seconds
    """
    amount: int
    duration: int


@dataclass(frozen=True)
class StakeWithNftParams:
    """
    Attributes:
        amount: Token amount in base units
        duration: Lock duration in seconds
        nft_id: ERC-721 token id pledged alongside the stake
    """
    amount: int
    duration: int
    nft_id: int


class StakingManager(Protocol):
    """The slice of the Manager binding the SDK calls."""

    async def stake(self, amount: int, duration: int) -> PendingTransaction: ...

    async def stake_with_nft(self, amount: int, duration: int, nft_id: int) -> PendingTransaction: ...

    async def withdraw(self, staker: Optional[str] = None) -> PendingTransaction: ...
