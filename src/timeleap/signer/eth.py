"""
Signing key for the Timeleap client.

Every staking transaction is signed by one secp256k1 key.  It comes from
the PRIVATE_KEY environment variable or, failing that, from PRIVATE_KEY
in ~/.timeleap/.env (written by 'timeleap init').
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values, set_key
from eth_account import Account
from eth_account.signers.local import LocalAccount


TIMELEAP_DIR = Path.home() / ".timeleap"
TIMELEAP_ENV = TIMELEAP_DIR / ".env"

PRIVATE_KEY_VAR = "PRIVATE_KEY"


def generate_eoa() -> tuple[str, str]:
    """
    Create a fresh externally owned account.

    Returns:
        Tuple of (0x-prefixed private key, checksummed address)
    """
    account = Account.create()
    return "0x" + bytes(account.key).hex(), account.address


def save_private_key(private_key: str, env_path: Optional[Path] = None) -> Path:
    """
    Store PRIVATE_KEY in a .env file, leaving its other entries alone.

    The file is created owner-only (0600) on POSIX systems.
    """
    env_path = env_path or TIMELEAP_ENV
    env_path.parent.mkdir(parents=True, exist_ok=True)
    env_path.touch(mode=0o600, exist_ok=True)

    set_key(env_path, PRIVATE_KEY_VAR, private_key, quote_mode="never")
    if os.name != "nt":
        env_path.chmod(0o600)
    return env_path


def load_private_key(env_path: Optional[Path] = None) -> str:
    """
    Find the signing key; the environment wins over the .env file.

    Returns:
        0x-prefixed hex private key

    Raises:
        ValueError: If PRIVATE_KEY is set in neither place
    """
    env_path = env_path or TIMELEAP_ENV

    private_key = os.environ.get(PRIVATE_KEY_VAR)
    if not private_key and env_path.exists():
        private_key = dotenv_values(env_path).get(PRIVATE_KEY_VAR)
    if not private_key:
        raise ValueError(
            f"{PRIVATE_KEY_VAR} not found. Run 'timeleap init' or set it in {env_path}"
        )

    return private_key if private_key.startswith("0x") else "0x" + private_key


def get_account(private_key: Optional[str] = None) -> LocalAccount:
    """LocalAccount for private_key, or for the stored key when None."""
    return Account.from_key(private_key or load_private_key())


def get_address(private_key: Optional[str] = None) -> str:
    return get_account(private_key).address
