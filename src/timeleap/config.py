"""
Client settings.

Values come from the process environment, after ~/.timeleap/.env has been
loaded (entries already in the environment win).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .chain.rpc import DEFAULT_RPC_URL
from .signer.eth import TIMELEAP_ENV


class ConfigError(ValueError):
    exit_code: int = 1


# Environment variable for each contract address setting
ADDRESS_ENV = {
    "manager": "MANAGER_ADDRESS",
    "stakes": "STAKES_ADDRESS",
    "bank": "BANK_ADDRESS",
    "token": "TOKEN_ADDRESS",
    "nft": "NFT_ADDRESS",
}


@dataclass(frozen=True)
class Settings:
    """
    Resolved client configuration.

    Attributes:
        rpc_url: JSON-RPC endpoint of the node
        chain_id: Chain id, or None to ask the node
        manager: Manager contract address
        stakes: Stakes contract address
        bank: Bank contract address
        token: Staked ERC-20 token address
        nft: Collateral ERC-721 address
        artifacts_dir: Compiled contract artifacts (for deployment)
    """
    rpc_url: str = DEFAULT_RPC_URL
    chain_id: Optional[int] = None
    manager: Optional[str] = None
    stakes: Optional[str] = None
    bank: Optional[str] = None
    token: Optional[str] = None
    nft: Optional[str] = None
    artifacts_dir: Optional[Path] = None

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "Settings":
        """
        Read settings from the environment.

        Raises:
            ConfigError: If CHAIN_ID is not an integer
        """
        env_path = env_path or TIMELEAP_ENV
        if env_path.exists():
            load_dotenv(env_path, override=False)

        chain_id = os.environ.get("CHAIN_ID")
        try:
            chain_id_value = int(chain_id) if chain_id else None
        except ValueError:
            raise ConfigError(f"CHAIN_ID must be an integer, got {chain_id!r}") from None
        artifacts = os.environ.get("TIMELEAP_ARTIFACTS_DIR")
        return cls(
            rpc_url=os.environ.get("TIMELEAP_RPC_URL", DEFAULT_RPC_URL),
            chain_id=chain_id_value,
            artifacts_dir=Path(artifacts).expanduser() if artifacts else None,
            **{name: os.environ.get(var) or None for name, var in ADDRESS_ENV.items()},
        )

    def with_overrides(self, **values: Optional[str]) -> "Settings":
        """Copy with the given non-None values replaced."""
        return replace(self, **{k: v for k, v in values.items() if v is not None})

    def require(self, name: str) -> str:
        """
        Get a contract address setting.

        Raises:
            ConfigError: If the address is not configured
        """
        value = getattr(self, name)
        if not value:
            raise ConfigError(
                f"{ADDRESS_ENV[name]} not set. Export it or add it to {TIMELEAP_ENV}."
            )
        return value
