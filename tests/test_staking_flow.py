"""
End-to-end staking flow against the in-process fake node.

Covers staking below the minimum duration, token and NFT custody in the
Bank, early withdrawal, and withdrawal once the lock has expired.
"""

from __future__ import annotations

import pytest

from fakechain import INITIAL_BALANCE, MIN_STAKE_DURATION, TOKEN_UNIT, FakeChain, System, deploy_system
from timeleap import sdk
from timeleap.chain.abi import encode_call, selector
from timeleap.chain.rpc import ChainError, ContractRevertError, RpcClient, TransactionFailedError
from timeleap.contracts import Stakes

AMOUNT = 100 * TOKEN_UNIT


async def _approve(system: System, amount: int = AMOUNT, nft_id: int | None = None) -> None:
    await (await system.token.approve(system.manager.address, amount)).wait()
    if nft_id is not None:
        await (await system.nft.approve(system.manager.address, nft_id)).wait()


class TestStake:
    @pytest.mark.asyncio
    async def test_min_stake_duration(self, system: System) -> None:
        assert await system.manager.min_stake_duration() == MIN_STAKE_DURATION == 90 * 24 * 60 * 60

    @pytest.mark.asyncio
    async def test_too_short_duration_reverts(self, system: System, chain: FakeChain) -> None:
        await _approve(system)
        sent_before = len(chain.sent)

        with pytest.raises(ContractRevertError) as exc_info:
            await sdk.stake(system.manager, sdk.StakeParams(AMOUNT, MIN_STAKE_DURATION - 1))

        assert exc_info.value.error_name == "MinStakeDurationNotMet"
        assert exc_info.value.reason == "MinStakeDurationNotMet()"
        # Rejected at gas estimation; nothing was broadcast
        assert len(chain.sent) == sent_before
        assert await system.stakes.get_stake_amount(system.user.address) == 0

    @pytest.mark.asyncio
    async def test_stake_moves_tokens_into_bank(self, system: System) -> None:
        await _approve(system)

        receipt = await sdk.stake(system.manager, sdk.StakeParams(AMOUNT, MIN_STAKE_DURATION))

        assert receipt.succeeded
        assert await system.token.balance_of(system.bank.address) == AMOUNT
        assert await system.token.balance_of(system.user.address) == INITIAL_BALANCE - AMOUNT
        assert await system.stakes.get_stake_amount(system.user.address) == AMOUNT
        assert await system.stakes.get_staked_nft_id(system.user.address) == (False, 0)

        (event,) = system.manager.events(receipt, "Staked")
        assert event["user"] == system.user.address
        assert event["amount"] == AMOUNT
        assert event["duration"] == MIN_STAKE_DURATION

    @pytest.mark.asyncio
    async def test_stake_sends_exact_calldata(self, system: System, chain: FakeChain) -> None:
        await _approve(system)

        await sdk.stake(system.manager, sdk.StakeParams(AMOUNT, MIN_STAKE_DURATION))

        sent = chain.sent[-1]
        assert sent["from"] == system.user.address
        assert sent["to"] == system.manager.address
        assert sent["data"] == encode_call(system.manager.abi, "stake", [AMOUNT, MIN_STAKE_DURATION])
        assert sent["data"][:10] == "0x" + selector("stake(uint256,uint256)").hex()

    @pytest.mark.asyncio
    async def test_stake_without_allowance_reverts(self, system: System) -> None:
        with pytest.raises(ContractRevertError) as exc_info:
            await sdk.stake(system.manager, sdk.StakeParams(AMOUNT, MIN_STAKE_DURATION))

        # Raised by the token, so not part of the Manager ABI
        expected = "0x" + selector("ERC20InsufficientAllowance(address,uint256,uint256)").hex()
        assert exc_info.value.revert_data.startswith(expected)
        assert exc_info.value.reason == f"unknown custom error {expected}"

    @pytest.mark.asyncio
    async def test_operator_overload(self, system: System, chain: FakeChain) -> None:
        await _approve(system)

        pending = await system.manager.stake(
            AMOUNT, MIN_STAKE_DURATION, staker=system.user.address
        )
        (event,) = system.manager.events(await pending.wait(), "Staked")

        assert event["user"] == system.user.address
        assert chain.sent[-1]["data"][:10] == "0x" + selector("stake(address,uint256,uint256)").hex()
        assert await system.stakes.get_stake_amount(system.user.address) == AMOUNT

    @pytest.mark.asyncio
    async def test_stakes_accumulate(self, system: System) -> None:
        await _approve(system, 2 * AMOUNT)

        await sdk.stake(system.manager, sdk.StakeParams(AMOUNT, MIN_STAKE_DURATION))
        await sdk.stake(system.manager, sdk.StakeParams(AMOUNT, MIN_STAKE_DURATION))

        assert await system.stakes.get_stake_amount(system.user.address) == 2 * AMOUNT
        assert await system.token.balance_of(system.bank.address) == 2 * AMOUNT


class TestStakeWithNft:
    @pytest.mark.asyncio
    async def test_nft_held_by_bank(self, system: System) -> None:
        assert await system.nft.owner_of(0) == system.user.address
        await _approve(system, nft_id=0)

        receipt = await sdk.stake_with_nft(
            system.manager, sdk.StakeWithNftParams(AMOUNT, MIN_STAKE_DURATION, 0)
        )

        assert await system.nft.owner_of(0) == system.bank.address
        assert await system.stakes.get_staked_nft_id(system.user.address) == (True, 0)
        assert await system.stakes.get_stake_amount(system.user.address) == AMOUNT

        (event,) = system.manager.events(receipt, "StakedWithNft")
        assert event.args == {
            "user": system.user.address,
            "amount": AMOUNT,
            "duration": MIN_STAKE_DURATION,
            "nftId": 0,
        }

    @pytest.mark.asyncio
    async def test_too_short_duration_reverts(self, system: System) -> None:
        await _approve(system, nft_id=0)

        with pytest.raises(ContractRevertError) as exc_info:
            await sdk.stake_with_nft(
                system.manager, sdk.StakeWithNftParams(AMOUNT, 3600, 0)
            )

        assert exc_info.value.error_name == "MinStakeDurationNotMet"
        assert await system.nft.owner_of(0) == system.user.address


class TestUnstake:
    @pytest.mark.asyncio
    async def test_before_unlock_reverts(self, system: System) -> None:
        await _approve(system)
        await sdk.stake(system.manager, sdk.StakeParams(AMOUNT, MIN_STAKE_DURATION))

        with pytest.raises(ContractRevertError) as exc_info:
            await sdk.unstake(system.manager)

        assert exc_info.value.error_name == "NotUnlocked"
        assert str(exc_info.value) == "execution reverted: NotUnlocked()"
        assert await system.stakes.get_stake_amount(system.user.address) == AMOUNT

    @pytest.mark.asyncio
    async def test_after_unlock_returns_tokens(self, system: System, rpc: RpcClient) -> None:
        await _approve(system)
        await sdk.stake(system.manager, sdk.StakeParams(AMOUNT, MIN_STAKE_DURATION))

        await rpc.increase_time(MIN_STAKE_DURATION + 1)
        receipt = await sdk.unstake(system.manager)

        (event,) = system.manager.events(receipt, "Withdrawn")
        assert event["user"] == system.user.address
        assert event["amount"] == AMOUNT
        assert await system.token.balance_of(system.user.address) == INITIAL_BALANCE
        assert await system.token.balance_of(system.bank.address) == 0
        assert await system.stakes.get_stake_amount(system.user.address) == 0

    @pytest.mark.asyncio
    async def test_after_unlock_returns_nft(self, system: System, rpc: RpcClient) -> None:
        await _approve(system, nft_id=0)
        await sdk.stake_with_nft(
            system.manager, sdk.StakeWithNftParams(AMOUNT, MIN_STAKE_DURATION, 0)
        )

        await rpc.increase_time(MIN_STAKE_DURATION + 1)
        receipt = await sdk.unstake(system.manager)

        (event,) = system.manager.events(receipt, "WithdrawnWithNft")
        assert event.args == {"user": system.user.address, "amount": AMOUNT, "nftId": 0}
        assert await system.nft.owner_of(0) == system.user.address
        assert await system.stakes.get_staked_nft_id(system.user.address) == (False, 0)

    @pytest.mark.asyncio
    async def test_mined_revert_reports_reason(self, system: System) -> None:
        await _approve(system)
        await sdk.stake(system.manager, sdk.StakeParams(AMOUNT, MIN_STAKE_DURATION))

        # A fixed gas limit skips estimation, so the revert happens on-chain
        pending = await system.manager.withdraw(gas_limit=200_000)
        with pytest.raises(TransactionFailedError) as exc_info:
            await pending.wait()

        assert exc_info.value.receipt.status == 0
        assert exc_info.value.reason == "NotUnlocked()"


class TestDeployment:
    @pytest.mark.asyncio
    async def test_manager_wiring(self, system: System) -> None:
        assert await system.manager.stakes() == system.stakes.address
        assert await system.manager.bank() == system.bank.address
        assert await system.manager.token() == system.token.address
        assert await system.manager.nft() == system.nft.address
        assert await system.repository.implementation() == system.manager.address

    @pytest.mark.asyncio
    async def test_mock_tokens(self, system: System) -> None:
        assert await system.token.symbol() == "TKN"
        assert await system.token.decimals() == 18
        assert await system.token.balance_of(system.user.address) == INITIAL_BALANCE
        assert await system.nft.balance_of(system.user.address) == 1

    @pytest.mark.asyncio
    async def test_unregistered_manager_is_unauthorized(
        self, rpc: RpcClient, deployer, user, artifacts_dir
    ) -> None:
        system = await deploy_system(rpc, deployer, user, artifacts_dir, upgrade=False)
        await _approve(system)

        with pytest.raises(ContractRevertError) as exc_info:
            await sdk.stake(system.manager, sdk.StakeParams(AMOUNT, MIN_STAKE_DURATION))

        expected = "0x" + selector("Unauthorized(address)").hex()
        assert exc_info.value.revert_data.startswith(expected)

    @pytest.mark.asyncio
    async def test_read_without_contract_code(self, system: System, rpc: RpcClient) -> None:
        stakes = Stakes(system.user.address, rpc)

        expected = f"getStakedNftId returned no data; is Stakes deployed at {system.user.address}"
        with pytest.raises(ChainError, match=expected):
            await stakes.get_staked_nft_id(system.user.address)
        with pytest.raises(ChainError, match="getStakeAmount returned no data"):
            await stakes.get_stake_amount(system.user.address)


class TestFinality:
    @pytest.mark.asyncio
    async def test_waits_until_mined(self, system: System, chain: FakeChain) -> None:
        await _approve(system)
        chain.pending_polls = 3
        polls_before = chain.count("eth_getTransactionReceipt")

        receipt = await sdk.stake(system.manager, sdk.StakeParams(AMOUNT, MIN_STAKE_DURATION))

        assert receipt.succeeded
        assert chain.count("eth_getTransactionReceipt") - polls_before == 4
