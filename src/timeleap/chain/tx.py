"""
Transaction Builder - Build, sign, and send Ethereum transactions.

Uses eth-account for signing and the async JSON-RPC client for sending.
Every state-changing call returns a PendingTransaction whose wait()
resolves once the transaction is mined.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from .abi import decode_revert, encode_call, encode_constructor_args, load_abi, load_bytecode
from .rpc import (
    ContractRevertError,
    Receipt,
    RpcClient,
    RpcError,
    TransactionFailedError,
)

logger = logging.getLogger(__name__)


def as_revert(exc: RpcError, abi: Optional[list] = None) -> RpcError:
    """
    Turn an RPC error carrying revert data into a ContractRevertError.

    The node's code, message and data are kept as they are; the decoded
    reason is added alongside.  Errors that are not reverts come back as-is.
    """
    if isinstance(exc, ContractRevertError):
        return exc
    decoded = decode_revert(abi or [], exc.revert_data)
    if decoded is None:
        if "revert" in exc.message.lower():
            return ContractRevertError(exc.code, exc.message, exc.data)
        return exc
    return ContractRevertError(
        exc.code,
        exc.message,
        exc.data,
        error_name=decoded.name,
        error_args=decoded.args,
        reason=decoded.reason,
    )


@dataclass
class PendingTransaction:
    """
    A broadcast transaction that has not necessarily been mined.

    Attributes:
        rpc: Client used to poll for the receipt
        tx_hash: 0x-prefixed transaction hash
        tx: The transaction as sent (used to replay failures)
        abi: ABI used to decode a revert reason
    """
    rpc: RpcClient
    tx_hash: str
    tx: dict[str, Any] = field(default_factory=dict)
    abi: list = field(default_factory=list, repr=False)

    async def wait(self, confirmations: int = 1, timeout: float = 120.0) -> Receipt:
        """
        Wait for the transaction to be mined.

        Raises:
            TransactionFailedError: If the transaction reverted on-chain
            TransactionTimeoutError: If not confirmed within timeout
        """
        receipt = await self.rpc.wait_for_receipt(
            self.tx_hash, confirmations=confirmations, timeout=timeout
        )
        if not receipt.succeeded:
            reason = await self._replay_reason(receipt)
            logger.info(f"tx {self.tx_hash} reverted in block {receipt.block_number}: {reason}")
            raise TransactionFailedError(receipt, reason)

        logger.info(f"tx {self.tx_hash} confirmed in block {receipt.block_number}")
        return receipt

    async def _replay_reason(self, receipt: Receipt) -> str:
        """Re-run the call at the mined block to recover the revert reason."""
        call = {k: self.tx[k] for k in ("from", "to", "data", "value") if k in self.tx}
        if "to" not in call:
            return ""
        try:
            await self.rpc.eth_call(call, receipt.block_number)
        except RpcError as exc:
            revert = as_revert(exc, self.abi)
            return getattr(revert, "reason", exc.message)
        return ""


async def _fill_tx(
    rpc: RpcClient,
    account: LocalAccount,
    tx: dict[str, Any],
    gas_limit: Optional[int],
    abi: Optional[list],
) -> dict[str, Any]:
    """Add nonce, gas price, chain id and gas to a transaction dict."""
    tx["nonce"] = await rpc.get_nonce(account.address)
    tx["gasPrice"] = await rpc.gas_price()
    tx["chainId"] = await rpc.chain_id()

    if gas_limit is None:
        # Estimation executes the call, so a revert surfaces here before broadcast
        try:
            gas_limit = await rpc.estimate_gas(tx)
        except RpcError as exc:
            raise as_revert(exc, abi) from exc
    tx["gas"] = gas_limit
    return tx


async def build_contract_tx(
    rpc: RpcClient,
    account: LocalAccount,
    contract_address: str,
    function_name: str,
    args: list,
    abi: list,
    value: int = 0,
    gas_limit: Optional[int] = None,
) -> dict:
    """
    Build a contract call transaction (unsigned).

    Args:
        rpc: JSON-RPC client
        account: Signing account (sender)
        contract_address: 0x-prefixed contract address
        function_name: Function to call
        args: Function arguments
        abi: Contract ABI
        value: ETH value in wei (default: 0)
        gas_limit: Gas limit (default: eth_estimateGas)

    Returns:
        Unsigned transaction dict

    Raises:
        ContractRevertError: If gas estimation reverts
    """
    tx: dict[str, Any] = {
        "from": account.address,
        "to": to_checksum_address(contract_address),
        "data": encode_call(abi, function_name, args),
        "value": value,
    }
    return await _fill_tx(rpc, account, tx, gas_limit, abi)


async def sign_and_send(
    rpc: RpcClient,
    account: LocalAccount,
    tx: dict,
    abi: Optional[list] = None,
) -> PendingTransaction:
    """
    Sign a transaction and broadcast it.

    Returns:
        PendingTransaction for the broadcast hash
    """
    unsigned = {k: v for k, v in tx.items() if k != "from"}
    signed = account.sign_transaction(unsigned)
    raw_tx = "0x" + bytes(signed.raw_transaction).hex()

    try:
        tx_hash = await rpc.send_raw_transaction(raw_tx)
    except RpcError as exc:
        raise as_revert(exc, abi) from exc

    logger.info(f"tx {tx_hash} sent from {account.address} (nonce {tx.get('nonce')})")
    return PendingTransaction(rpc=rpc, tx_hash=tx_hash, tx=tx, abi=list(abi or []))


async def send_contract_tx(
    rpc: RpcClient,
    account: LocalAccount,
    contract_address: str,
    function_name: str,
    args: list,
    abi: list,
    value: int = 0,
    gas_limit: Optional[int] = None,
) -> PendingTransaction:
    """
    Build, sign, and send a contract call transaction.

    Convenience function combining build + sign + send.  Does not wait;
    await .wait() on the result for the receipt.
    """
    tx = await build_contract_tx(
        rpc,
        account,
        contract_address=contract_address,
        function_name=function_name,
        args=args,
        abi=abi,
        value=value,
        gas_limit=gas_limit,
    )
    return await sign_and_send(rpc, account, tx, abi=abi)


async def deploy_contract(
    rpc: RpcClient,
    account: LocalAccount,
    contract_name: str,
    constructor_args: Optional[list] = None,
    gas_limit: Optional[int] = None,
    artifacts_dir: Optional[Path] = None,
    confirmations: int = 1,
) -> Receipt:
    """
    Deploy a contract from its compiled artifact and wait for the receipt.

    Builds a creation transaction (no "to"), signs, sends, and reads the
    deployed address from the receipt.

    Args:
        rpc: JSON-RPC client
        account: Deployer account
        contract_name: Contract name (e.g., "Manager")
        constructor_args: Constructor arguments (default: none)
        gas_limit: Gas limit (default: eth_estimateGas)
        artifacts_dir: Compiled artifacts directory
        confirmations: Confirmations to wait for

    Returns:
        Receipt with contract_address set
    """
    bytecode = load_bytecode(contract_name, artifacts_dir)
    abi = load_abi(contract_name, artifacts_dir)

    deploy_data = bytecode + encode_constructor_args(abi, list(constructor_args or []))

    tx: dict[str, Any] = {
        "from": account.address,
        "data": deploy_data,
        "value": 0,
    }
    tx = await _fill_tx(rpc, account, tx, gas_limit, abi)

    pending = await sign_and_send(rpc, account, tx, abi=abi)
    receipt = await pending.wait(confirmations=confirmations)

    if not receipt.contract_address:
        raise TransactionFailedError(receipt, f"no contract address for {contract_name}")

    logger.info(f"{contract_name} deployed at {receipt.contract_address}")
    return receipt
