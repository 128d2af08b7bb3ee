"""
SDK - one coroutine per staking operation.

Each function sends a single Manager transaction and resolves with the
receipt once it is mined.  There is no validation, retry or recovery;
contract reverts reach the caller unchanged.
"""

from .stake import stake, stake_with_nft
from .types import StakeParams, StakeWithNftParams, StakingManager
from .unstake import unstake

__all__ = [
    "StakeParams",
    "StakeWithNftParams",
    "StakingManager",
    "stake",
    "stake_with_nft",
    "unstake",
]
