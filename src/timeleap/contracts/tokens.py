"""ERC-20 and ERC-721 bindings (including the mock mint entry points)."""

from __future__ import annotations

from ..chain.tx import PendingTransaction
from .base import Contract


class ERC20(Contract):
    CONTRACT_NAME = "MockERC20"

    async def balance_of(self, account: str) -> int:
        return await self.call("balanceOf", account)

    async def allowance(self, owner: str, spender: str) -> int:
        return await self.call("allowance", owner, spender)

    async def decimals(self) -> int:
        return await self.call("decimals")

    async def symbol(self) -> str:
        return await self.call("symbol")

    async def approve(self, spender: str, amount: int) -> PendingTransaction:
        return await self.transact("approve", spender, amount)

    async def mint(self, to: str, amount: int) -> PendingTransaction:
        """MockERC20 only."""
        return await self.transact("mint", to, amount)


class ERC721(Contract):
    CONTRACT_NAME = "MockERC721"

    async def balance_of(self, owner: str) -> int:
        return await self.call("balanceOf", owner)

    async def owner_of(self, token_id: int) -> str:
        return await self.call("ownerOf", token_id)

    async def get_approved(self, token_id: int) -> str:
        return await self.call("getApproved", token_id)

    async def approve(self, to: str, token_id: int) -> PendingTransaction:
        return await self.transact("approve", to, token_id)

    async def mint(self, to: str) -> PendingTransaction:
        """MockERC721 only; token ids are assigned sequentially from 0."""
        return await self.transact("mint", to)
