"""
Tests for native and ERC-20 transfers, including sending the full native balance.
"""

import pytest

from quoteflow.core.adapters import TransferProvider
from quoteflow.core.chain_types import EVM_NATIVE_TOKEN_ADDRESS, Network
from quoteflow.core.errors import ErrorStep
from quoteflow.core.execution.tx_builder import ERC20_TRANSFER_SELECTOR
from quoteflow.core.tools import TransferTool
from quoteflow.types.envelope import ErrorEnvelope, SuccessEnvelope

from tests.fakes import ETH, RECIPIENT, USDC_BASE, WALLET


@pytest.fixture
def transfer_tool(wallet, quote_store, allowance_manager, executor, collaborators):
    tool = TransferTool(wallet, quote_store, allowance_manager, executor)
    tool.register_provider(TransferProvider(allowance_manager=allowance_manager, **collaborators))
    return tool


def _request(**overrides):
    request = {
        "network": "base",
        "token": EVM_NATIVE_TOKEN_ADDRESS,
        "to_address": RECIPIENT,
        "amount": "1",
    }
    request.update(overrides)
    return request


@pytest.mark.asyncio
async def test_full_native_balance_keeps_gas_reserve(transfer_tool, chain_reader, wallet):
    chain_reader.set_native(Network.BASE, WALLET, ETH)

    result = await transfer_tool.run(_request())

    assert isinstance(result, SuccessEnvelope), result
    assert result.from_amount == "0.999"
    assert result.to_amount == "0.999"
    assert result.to_address == RECIPIENT
    (tx,) = wallet.sent
    assert tx.to == RECIPIENT
    assert tx.value == 999 * 10**15
    assert tx.data == "0x"


@pytest.mark.asyncio
async def test_partial_native_transfer_is_exact(transfer_tool, chain_reader, wallet):
    chain_reader.set_native(Network.BASE, WALLET, 5 * ETH)

    result = await transfer_tool.run(_request(amount="0.25"))

    assert result.from_amount == "0.25"
    assert wallet.sent[0].value == 25 * 10**16


@pytest.mark.asyncio
async def test_erc20_transfer_needs_no_approval(transfer_tool, chain_reader, wallet):
    chain_reader.set_token(Network.BASE, USDC_BASE, WALLET, 100 * 10**6)
    chain_reader.set_native(Network.BASE, WALLET, ETH)

    result = await transfer_tool.run(_request(token=USDC_BASE, amount="100"))

    assert isinstance(result, SuccessEnvelope), result
    assert result.approval_hash is None
    assert [kind for kind, _ in wallet.events] == ["send", "confirmed"]
    tx = wallet.sent[0]
    assert tx.to == USDC_BASE
    assert tx.data.startswith(ERC20_TRANSFER_SELECTOR)
    assert tx.data[10:74] == RECIPIENT[2:].zfill(64)
    assert int(tx.data[74:], 16) == 100 * 10**6


@pytest.mark.asyncio
async def test_balance_below_gas_reserve_is_zero_amount(transfer_tool, chain_reader, wallet):
    chain_reader.set_native(Network.BASE, WALLET, 5 * 10**14)

    result = await transfer_tool.run(_request())

    assert isinstance(result, ErrorEnvelope)
    assert result.error_step == ErrorStep.EXECUTION
    assert result.details["reason"] == "zero_amount"
    assert wallet.sent == []


@pytest.mark.asyncio
async def test_invalid_recipient(transfer_tool):
    result = await transfer_tool.run(_request(to_address="0x1234"))

    assert result.error_step == ErrorStep.TOOL_EXECUTION


@pytest.mark.asyncio
async def test_solana_is_not_a_transfer_network(transfer_tool):
    result = await transfer_tool.run(_request(network="solana"))

    assert result.error_step == ErrorStep.NETWORK_VALIDATION
    assert "solana" not in result.details["supportedNetworks"]


@pytest.mark.asyncio
async def test_quote_expires_after_eleven_minutes(transfer_tool, chain_reader, wallet, clock):
    chain_reader.set_native(Network.BASE, WALLET, 2 * ETH)
    _, quote = await transfer_tool.get_quote(_request())

    clock.advance(11 * 60)
    result = await transfer_tool.execute_quote(quote.quote_id)

    assert result.error_step == ErrorStep.EXECUTION
    assert result.details["reason"] == "quote_expired"
    assert wallet.sent == []


@pytest.mark.asyncio
async def test_balance_drop_between_quote_and_execution(transfer_tool, chain_reader, wallet):
    chain_reader.set_native(Network.BASE, WALLET, 2 * ETH)
    _, quote = await transfer_tool.get_quote(_request())

    chain_reader.set_native(Network.BASE, WALLET, ETH // 2)
    result = await transfer_tool.execute_quote(quote.quote_id)

    assert result.error_step == ErrorStep.EXECUTION
    assert result.details["reason"] == "insufficient_balance"
    assert wallet.sent == []
