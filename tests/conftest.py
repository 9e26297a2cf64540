"""Shared fakes for the AsyncWeb3 client."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_account import Account

from dapp_web3.config import Web3Config
from dapp_web3.wallet.context import EthereumContext
from dapp_web3.wallet.provider import Web3Utilities

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
OTHER_KEY = "0x" + "22" * 32
TX_HASH_BYTES = bytes.fromhex("12" * 32)


class FakeEth:
    """Stands in for ``AsyncWeb3.eth``; awaitable properties call AsyncMocks."""

    def __init__(self) -> None:
        self.get_gas_price = AsyncMock(return_value=10)
        self.get_block_number = AsyncMock(return_value=100)
        self.get_balance = AsyncMock(return_value=10**18)
        self.wait_for_transaction_receipt = AsyncMock(
            return_value={"status": 1, "blockNumber": 100}
        )
        self.contract = MagicMock()

    @property
    def gas_price(self):
        return self.get_gas_price()

    @property
    def block_number(self):
        return self.get_block_number()


class FakeWeb3:
    def __init__(self) -> None:
        self.eth = FakeEth()
        self.provider = SimpleNamespace(make_request=AsyncMock())


@pytest.fixture()
def account():
    return Account.from_key(PRIVATE_KEY)


@pytest.fixture()
def w3():
    return FakeWeb3()


@pytest.fixture()
def config():
    return Web3Config(confirmation_blocks=3, poll_interval=0.01)


@pytest.fixture()
def utils(w3, account, config):
    ctx = EthereumContext(
        web3=lambda: w3,
        account=lambda: account.address,
        network_id=lambda: 4,
    )
    return Web3Utilities(ctx, config)


@pytest.fixture()
def method():
    """A bound contract function, as returned by ``contract.functions.f(...)``."""
    fn = MagicMock()
    fn.estimate_gas = AsyncMock(return_value=100)
    fn.transact = AsyncMock(return_value=TX_HASH_BYTES)
    return fn
