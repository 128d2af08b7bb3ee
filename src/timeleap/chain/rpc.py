"""
Async JSON-RPC client for an EVM node.

Lightweight alternative to web3.py: httpx for transport, eth-abi for
encoding.  Supports contract reads, account queries, raw transaction
submission, receipt polling, and the evm_* helpers of local dev nodes.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from .abi import decode_result, encode_call

logger = logging.getLogger(__name__)

# Default RPC endpoint (local Hardhat / Anvil node)
DEFAULT_RPC_URL = "http://127.0.0.1:8545"


def get_rpc_url() -> str:
    """Get the RPC URL from environment or default."""
    return os.environ.get("TIMELEAP_RPC_URL", DEFAULT_RPC_URL)


class ChainError(RuntimeError):
    exit_code: int = 1


class RpcError(ChainError):
    """
    A JSON-RPC error response.

    Attributes:
        code: JSON-RPC error code
        message: Error message as returned by the node
        data: Error data (revert payload for reverted calls), if any
    """
    exit_code = 2

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message
        self.data = data

    @property
    def revert_data(self) -> Optional[str]:
        """Hex revert payload, if the node attached one."""
        data = self.data
        # Some nodes wrap the payload: {"data": "0x..."} or {"data": {"data": ...}}
        while isinstance(data, dict):
            data = data.get("data")
        if isinstance(data, str) and data.startswith("0x"):
            return data
        return None


class ContractRevertError(RpcError):
    """
    A contract call or transaction reverted.

    Carries the node's original error plus the decoded revert reason.
    """
    exit_code = 3

    def __init__(
        self,
        code: int,
        message: str,
        data: Any = None,
        error_name: str = "",
        error_args: tuple = (),
        reason: str = "",
    ) -> None:
        super().__init__(code, message, data)
        self.error_name = error_name
        self.error_args = error_args
        self.reason = reason or message

    def __str__(self) -> str:
        return f"execution reverted: {self.reason}"


class TransactionFailedError(ChainError):
    """A mined transaction has status 0."""
    exit_code = 4

    def __init__(self, receipt: "Receipt", reason: str = "") -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(f"Transaction {receipt.tx_hash} reverted{detail}")
        self.receipt = receipt
        self.reason = reason


class TransactionTimeoutError(ChainError, TimeoutError):
    exit_code = 5


def _to_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    return int(value, 16)


@dataclass(frozen=True)
class Receipt:
    """
    A transaction receipt.

    Attributes:
        tx_hash: 0x-prefixed transaction hash
        status: 1 for success, 0 for revert
        block_number: Block the transaction was mined in
        gas_used: Gas consumed
        contract_address: Created contract address (deployments only)
        logs: Raw log entries
        raw: The receipt dict as returned by the node
    """
    tx_hash: str
    status: int
    block_number: int
    gas_used: int = 0
    contract_address: Optional[str] = None
    logs: list[dict[str, Any]] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_rpc(cls, data: dict[str, Any]) -> "Receipt":
        return cls(
            tx_hash=data["transactionHash"],
            status=_to_int(data.get("status", "0x0")) or 0,
            block_number=_to_int(data.get("blockNumber")) or 0,
            gas_used=_to_int(data.get("gasUsed")) or 0,
            contract_address=data.get("contractAddress"),
            logs=list(data.get("logs") or []),
            raw=data,
        )

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class RpcClient:
    """
    Async JSON-RPC client.

    Use as an async context manager so the underlying connection pool is
    closed::

        async with RpcClient("http://127.0.0.1:8545") as rpc:
            head = await rpc.block_number()

    Args:
        rpc_url: Node endpoint (default: TIMELEAP_RPC_URL or localhost)
        timeout: Per-request HTTP timeout in seconds
        poll_interval: Delay between receipt polls in seconds
        chain_id: Known chain id; fetched from the node when omitted
        transport: Optional httpx transport (tests inject a fake node here)
    """

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        *,
        timeout: float = 30.0,
        poll_interval: float = 2.0,
        chain_id: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url or get_rpc_url()
        self.poll_interval = poll_interval
        self._chain_id = chain_id
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> "RpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, params: Optional[list] = None) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_call")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            RpcError: If the node returns an error object
            httpx.HTTPError: On transport failure
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }
        logger.debug(f"rpc -> {method} {payload['params']}")

        response = await self._client.post(self.rpc_url, json=payload)
        response.raise_for_status()
        data = response.json()

        if "error" in data:
            error = data["error"]
            logger.debug(f"rpc <- {method} error {error}")
            raise RpcError(
                int(error.get("code", -32000)),
                str(error.get("message", "")),
                error.get("data"),
            )

        return data.get("result")

    # ---- Chain state ----

    async def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = int(await self.request("eth_chainId"), 16)
        return self._chain_id

    async def block_number(self) -> int:
        return int(await self.request("eth_blockNumber"), 16)

    async def get_balance(self, address: str) -> int:
        """ETH balance of an address, in wei."""
        return int(await self.request("eth_getBalance", [address, "latest"]), 16)

    async def get_nonce(self, address: str, block: str = "pending") -> int:
        """
        Transaction count for an address.

        The "pending" tag counts transactions still in the mempool, so
        back-to-back sends from one account get consecutive nonces.
        """
        return int(await self.request("eth_getTransactionCount", [address, block]), 16)

    async def gas_price(self) -> int:
        return int(await self.request("eth_gasPrice"), 16)

    async def estimate_gas(self, tx: dict[str, Any]) -> int:
        return int(await self.request("eth_estimateGas", [_rpc_tx(tx)]), 16)

    async def eth_call(self, tx: dict[str, Any], block: Any = "latest") -> str:
        if isinstance(block, int):
            block = hex(block)
        return await self.request("eth_call", [_rpc_tx(tx), block])

    async def read_contract(
        self,
        contract_address: str,
        function_name: str,
        args: Optional[list] = None,
        abi: Optional[list] = None,
        block: Any = "latest",
    ) -> Any:
        """
        Read from a smart contract (eth_call).

        Returns:
            Decoded return value(s), or None for empty return data
        """
        if abi is None:
            raise ValueError("abi must be provided")
        args = args or []
        calldata = encode_call(abi, function_name, args)
        result = await self.eth_call({"to": contract_address, "data": calldata}, block)
        if result is None or result == "0x":
            return None
        return decode_result(abi, function_name, result, len(args))

    # ---- Transactions ----

    async def send_raw_transaction(self, raw_tx: str) -> str:
        """
        Send a signed raw transaction.

        Returns:
            Transaction hash (0x-prefixed hex)
        """
        return await self.request("eth_sendRawTransaction", [raw_tx])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Receipt]:
        data = await self.request("eth_getTransactionReceipt", [tx_hash])
        return Receipt.from_rpc(data) if data else None

    async def wait_for_receipt(
        self,
        tx_hash: str,
        confirmations: int = 1,
        timeout: float = 120.0,
    ) -> Receipt:
        """
        Wait until a transaction is mined with enough confirmations.

        A transaction mined in the current head block has one confirmation.

        Raises:
            TransactionTimeoutError: If not confirmed within timeout
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            receipt = await self.get_transaction_receipt(tx_hash)
            if receipt is not None:
                if confirmations <= 1:
                    return receipt
                head = await self.block_number()
                if head - receipt.block_number + 1 >= confirmations:
                    return receipt
            if loop.time() >= deadline:
                raise TransactionTimeoutError(
                    f"Transaction {tx_hash} not confirmed within {timeout}s"
                )
            await asyncio.sleep(self.poll_interval)

    # ---- Dev node helpers (Hardhat / Anvil) ----

    async def increase_time(self, seconds: int) -> None:
        """Advance the dev node clock and mine a block."""
        await self.request("evm_increaseTime", [seconds])
        await self.mine()

    async def mine(self) -> None:
        await self.request("evm_mine", [])


def _rpc_tx(tx: dict[str, Any]) -> dict[str, Any]:
    """Render a transaction dict with JSON-RPC quantities as hex strings."""
    rendered: dict[str, Any] = {}
    for key, value in tx.items():
        if key in ("nonce", "chainId"):
            continue
        rendered[key] = hex(value) if isinstance(value, int) else value
    return rendered
