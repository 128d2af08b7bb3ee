__all__ = [
    # SDK operations
    "StakeParams",
    "StakeWithNftParams",
    "stake",
    "stake_with_nft",
    "unstake",
    # Bindings
    "Contract",
    "Manager",
    "Stakes",
    "Bank",
    "Repository",
    "ERC20",
    "ERC721",
    # Chain
    "RpcClient",
    "Receipt",
    "PendingTransaction",
    "EventLog",
    # Errors
    "ChainError",
    "RpcError",
    "ContractRevertError",
    "TransactionFailedError",
    "TransactionTimeoutError",
    "ConfigError",
    # Config / identity
    "Settings",
    "generate_eoa",
    "get_account",
    "get_address",
    "load_private_key",
]

from .chain.abi import EventLog
from .chain.rpc import (
    ChainError,
    ContractRevertError,
    Receipt,
    RpcClient,
    RpcError,
    TransactionFailedError,
    TransactionTimeoutError,
)
from .chain.tx import PendingTransaction
from .config import ConfigError, Settings
from .contracts import ERC20, ERC721, Bank, Contract, Manager, Repository, Stakes
from .sdk import StakeParams, StakeWithNftParams, stake, stake_with_nft, unstake
from .signer.eth import generate_eoa, get_account, get_address, load_private_key
