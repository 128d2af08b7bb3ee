"""Tests for the JSON-RPC client, receipts, and transaction error mapping."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest
import pytest_asyncio

from fakechain import FakeChain
from timeleap.chain.abi import load_abi, selector
from timeleap.chain.rpc import (
    ChainError,
    ContractRevertError,
    Receipt,
    RpcClient,
    RpcError,
    TransactionTimeoutError,
    _rpc_tx,
)
from timeleap.chain.tx import as_revert


def scripted(reply: Callable[[str, list], Any]) -> httpx.MockTransport:
    """A transport answering each request with reply(method, params)."""

    def handle(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        body = reply(payload["method"], payload["params"])
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], **body})

    return httpx.MockTransport(handle)


@pytest_asyncio.fixture
async def null_receipts():
    client = RpcClient(
        "http://fake-node",
        transport=scripted(lambda method, params: {"result": None}),
        poll_interval=0,
    )
    yield client
    await client.aclose()


class TestRequest:
    @pytest.mark.asyncio
    async def test_result(self) -> None:
        seen = []

        def reply(method: str, params: list) -> dict:
            seen.append((method, params))
            return {"result": "0x10"}

        async with RpcClient("http://fake-node", transport=scripted(reply)) as rpc:
            assert await rpc.block_number() == 16
            assert await rpc.get_nonce("0xabc") == 16

        assert seen == [
            ("eth_blockNumber", []),
            ("eth_getTransactionCount", ["0xabc", "pending"]),
        ]

    @pytest.mark.asyncio
    async def test_error_object(self) -> None:
        transport = scripted(
            lambda method, params: {"error": {"code": -32601, "message": "method not found"}}
        )
        async with RpcClient("http://fake-node", transport=transport) as rpc:
            with pytest.raises(RpcError) as exc_info:
                await rpc.request("eth_foo")

        assert exc_info.value.code == -32601
        assert exc_info.value.message == "method not found"
        assert exc_info.value.exit_code == 2
        assert isinstance(exc_info.value, ChainError)

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        transport = scripted(lambda method, params: httpx.Response(502))
        async with RpcClient("http://fake-node", transport=transport) as rpc:
            with pytest.raises(httpx.HTTPStatusError):
                await rpc.block_number()

    @pytest.mark.asyncio
    async def test_chain_id_cached(self, rpc: RpcClient, chain: FakeChain) -> None:
        assert await rpc.chain_id() == 31337
        assert await rpc.chain_id() == 31337
        assert chain.count("eth_chainId") == 1

    @pytest.mark.asyncio
    async def test_configured_chain_id(self, chain: FakeChain) -> None:
        async with RpcClient("http://fake-node", chain_id=5, transport=chain.transport()) as rpc:
            assert await rpc.chain_id() == 5
        assert chain.count("eth_chainId") == 0

    @pytest.mark.asyncio
    async def test_read_contract_requires_abi(self, rpc: RpcClient) -> None:
        with pytest.raises(ValueError, match="abi"):
            await rpc.read_contract("0x" + "11" * 20, "token")

    def test_rpc_tx_rendering(self) -> None:
        rendered = _rpc_tx(
            {"from": "0xabc", "to": "0xdef", "data": "0x", "value": 0, "gas": 21000, "nonce": 3, "chainId": 1}
        )
        assert rendered == {"from": "0xabc", "to": "0xdef", "data": "0x", "value": "0x0", "gas": "0x5208"}


class TestRevertMapping:
    def test_revert_data_unwrapped(self) -> None:
        exc = RpcError(3, "execution reverted", {"data": {"data": "0xdeadbeef"}})
        assert exc.revert_data == "0xdeadbeef"
        assert RpcError(3, "x", {"message": "no hex"}).revert_data is None

    def test_custom_error(self) -> None:
        data = "0x" + selector("MinStakeDurationNotMet()").hex()
        revert = as_revert(RpcError(3, "execution reverted", data), load_abi("Manager"))

        assert isinstance(revert, ContractRevertError)
        assert revert.error_name == "MinStakeDurationNotMet"
        assert revert.reason == "MinStakeDurationNotMet()"
        assert revert.code == 3
        assert revert.data == data
        assert revert.exit_code == 3

    def test_revert_without_data(self) -> None:
        revert = as_revert(RpcError(-32000, "execution reverted"), [])
        assert isinstance(revert, ContractRevertError)
        assert revert.reason == "execution reverted"

    def test_other_errors_unchanged(self) -> None:
        exc = RpcError(-32000, "nonce too low")
        assert as_revert(exc, []) is exc


class TestReceipts:
    def test_from_rpc(self) -> None:
        receipt = Receipt.from_rpc({
            "transactionHash": "0xaa",
            "status": "0x1",
            "blockNumber": "0x1b",
            "gasUsed": "0x5208",
            "contractAddress": None,
            "logs": [],
        })
        assert receipt.succeeded
        assert receipt.block_number == 27
        assert receipt.gas_used == 21000

    def test_failed_status(self) -> None:
        receipt = Receipt.from_rpc({"transactionHash": "0xbb", "status": "0x0", "blockNumber": "0x2"})
        assert not receipt.succeeded

    @pytest.mark.asyncio
    async def test_timeout(self, null_receipts: RpcClient) -> None:
        with pytest.raises(TransactionTimeoutError) as exc_info:
            await null_receipts.wait_for_receipt("0x" + "ee" * 32, timeout=0)

        assert isinstance(exc_info.value, TimeoutError)
        assert exc_info.value.exit_code == 5

    @pytest.mark.asyncio
    async def test_confirmations(self, system, rpc: RpcClient, chain: FakeChain) -> None:
        pending = await system.token.approve(system.manager.address, 1)
        mined = await pending.wait()

        await rpc.mine()
        await rpc.mine()
        receipt = await rpc.wait_for_receipt(pending.tx_hash, confirmations=3, timeout=1)

        assert receipt.block_number == mined.block_number
        assert chain.block - receipt.block_number + 1 == 3

    @pytest.mark.asyncio
    async def test_confirmations_not_reached(self, system, rpc: RpcClient, chain: FakeChain) -> None:
        pending = await system.token.approve(system.manager.address, 1)
        head_checks = chain.count("eth_blockNumber")

        # Mined in the head block: one confirmation, not three
        with pytest.raises(TransactionTimeoutError):
            await rpc.wait_for_receipt(pending.tx_hash, confirmations=3, timeout=0)
        with pytest.raises(TransactionTimeoutError):
            await pending.wait(confirmations=2, timeout=0)

        assert chain.count("eth_blockNumber") - head_checks == 2
        assert (await pending.wait(confirmations=1, timeout=0)).succeeded

    @pytest.mark.asyncio
    async def test_increase_time_mines(self, rpc: RpcClient, chain: FakeChain) -> None:
        start_time, start_block = chain.time, chain.block

        await rpc.increase_time(3600)

        assert chain.time >= start_time + 3600
        assert chain.block == start_block + 1
        assert [m for m, _ in chain.requests] == ["evm_increaseTime", "evm_mine"]
