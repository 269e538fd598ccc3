"""
Pytest fixtures wiring the in-memory fakes into real collaborators.
"""

from typing import Any, Dict

import pytest

from quoteflow.core.allowance import AllowanceManager
from quoteflow.core.amounts import AmountAdjuster
from quoteflow.core.balance import BalanceValidator
from quoteflow.core.chain_types import Network
from quoteflow.core.execution.executor import TransactionExecutor
from quoteflow.core.quote_store import QuoteStore
from quoteflow.core.tokens import TokenResolver

from tests.fakes import (
    GAS_BUFFERS,
    USDC_BASE,
    WETH_BASE,
    FakeChainReader,
    FakeClock,
    FakeWallet,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def chain_reader() -> FakeChainReader:
    reader = FakeChainReader()
    reader.set_metadata(Network.BASE, USDC_BASE, 6, "USDC")
    reader.set_metadata(Network.BASE, WETH_BASE, 18, "WETH")
    reader.set_metadata(Network.ETHEREUM, USDC_BASE, 6, "USDC")
    return reader


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def executor(wallet: FakeWallet) -> TransactionExecutor:
    return TransactionExecutor(wallet)


@pytest.fixture
def quote_store(clock: FakeClock) -> QuoteStore:
    return QuoteStore(600, clock=clock, sweep_interval_seconds=30, tombstone_size=16)


@pytest.fixture
def allowance_manager(chain_reader: FakeChainReader) -> AllowanceManager:
    return AllowanceManager(chain_reader)


@pytest.fixture
def collaborators(chain_reader: FakeChainReader) -> Dict[str, Any]:
    return {
        "token_resolver": TokenResolver(chain_reader),
        "amount_adjuster": AmountAdjuster(chain_reader, GAS_BUFFERS),
        "balance_validator": BalanceValidator(chain_reader, GAS_BUFFERS),
    }
