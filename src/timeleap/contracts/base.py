"""
Contract binding base class.

A binding pairs a deployed address with its ABI, a JSON-RPC client and
(optionally) the account that signs transactions.  Subclasses expose the
contract's methods as typed async methods.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from ..chain.abi import EventLog, decode_logs, find_function, load_abi
from ..chain.rpc import ChainError, Receipt, RpcClient, RpcError
from ..chain.tx import PendingTransaction, as_revert, deploy_contract, send_contract_tx


class Contract:
    """
    A deployed contract.

    Args:
        address: 0x-prefixed contract address
        rpc: JSON-RPC client
        account: Signer for state-changing calls (see connect())
        abi: ABI override (default: load_abi(CONTRACT_NAME))
    """

    CONTRACT_NAME: str = ""

    def __init__(
        self,
        address: str,
        rpc: RpcClient,
        account: Optional[LocalAccount] = None,
        abi: Optional[list] = None,
    ) -> None:
        self.address = to_checksum_address(address)
        self.rpc = rpc
        self.account = account
        self.abi = abi if abi is not None else load_abi(self.CONTRACT_NAME)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address})"

    def connect(self, account: LocalAccount) -> "Contract":
        """Return the same binding signing with another account."""
        return type(self)(self.address, self.rpc, account, self.abi)

    async def call(self, function_name: str, *args: Any) -> Any:
        """
        Read-only call.

        Raises:
            ContractRevertError: If the call reverts
            ChainError: If a function with outputs returns no data, which
                means there is no contract code at the address
        """
        try:
            result = await self.rpc.read_contract(
                self.address, function_name, list(args), abi=self.abi
            )
        except RpcError as exc:
            raise as_revert(exc, self.abi) from exc

        if result is None and find_function(self.abi, function_name, len(args)).get("outputs"):
            raise ChainError(
                f"{function_name} returned no data; is {type(self).__name__} deployed at {self.address}?"
            )
        return result

    async def transact(
        self,
        function_name: str,
        *args: Any,
        value: int = 0,
        gas_limit: Optional[int] = None,
    ) -> PendingTransaction:
        """Send a transaction calling function_name(*args)."""
        if self.account is None:
            raise ValueError(f"{self!r} has no signer; use connect(account)")
        return await send_contract_tx(
            self.rpc,
            self.account,
            contract_address=self.address,
            function_name=function_name,
            args=list(args),
            abi=self.abi,
            value=value,
            gas_limit=gas_limit,
        )

    def events(self, receipt: Receipt, name: Optional[str] = None) -> list[EventLog]:
        """Events emitted by this contract in a receipt, optionally by name."""
        decoded = decode_logs(self.abi, receipt.logs, address=self.address)
        if name is not None:
            decoded = [e for e in decoded if e.name == name]
        return decoded

    @classmethod
    async def deploy(
        cls,
        rpc: RpcClient,
        account: LocalAccount,
        *constructor_args: Any,
        artifacts_dir: Optional[Path] = None,
    ) -> "Contract":
        """Deploy from compiled artifacts and bind to the new address."""
        receipt = await deploy_contract(
            rpc,
            account,
            cls.CONTRACT_NAME,
            list(constructor_args),
            artifacts_dir=artifacts_dir,
        )
        return cls(
            receipt.contract_address,
            rpc,
            account,
            load_abi(cls.CONTRACT_NAME, artifacts_dir),
        )
