"""Shared fixtures: a fake node, fresh accounts and a deployed staking system."""

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio
from eth_account import Account
from eth_account.signers.local import LocalAccount

from fakechain import FakeChain, System, deploy_system, write_artifacts
from timeleap.chain.rpc import RpcClient
from timeleap.signer.eth import generate_eoa


@pytest.fixture()
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture()
def artifacts_dir(tmp_path: Path) -> Path:
    return write_artifacts(tmp_path)


@pytest.fixture()
def deployer() -> LocalAccount:
    return Account.from_key(generate_eoa()[0])


@pytest.fixture()
def user() -> LocalAccount:
    return Account.from_key(generate_eoa()[0])


@pytest_asyncio.fixture
async def rpc(chain: FakeChain):
    client = RpcClient("http://fake-node", transport=chain.transport(), poll_interval=0)
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def system(rpc: RpcClient, deployer: LocalAccount, user: LocalAccount, artifacts_dir: Path) -> System:
    return await deploy_system(rpc, deployer, user, artifacts_dir)
