"""
Tests for the bridge tool against a mocked Relay API.
"""

import json

import httpx
import pytest

from quoteflow.core.adapters import RelayBridgeProvider
from quoteflow.core.chain_types import Network
from quoteflow.core.errors import ErrorStep
from quoteflow.core.execution.tx_builder import ERC20_APPROVE_SELECTOR
from quoteflow.core.tools import BridgeTool
from quoteflow.providers.relay import RelayClient
from quoteflow.types.envelope import SuccessEnvelope

from tests.fakes import ETH, USDC_BASE, USDC_SOL, WALLET


USDC_ARB = "0xaf88d065e77c8cc2239327c5edb3a432268e5831"
RELAY_RECEIVER = "0xa5f565650890fba1824ee0f21ebbbf660a179934"


def relay_quote_response():
    return {
        "steps": [
            {
                "id": "approve",
                "items": [{"data": {"to": USDC_BASE, "data": ERC20_APPROVE_SELECTOR + "00" * 64}}],
            },
            {
                "id": "deposit",
                "items": [
                    {
                        "data": {
                            "to": RELAY_RECEIVER,
                            "data": "0x58109c",
                            "value": "0",
                            "gas": "0x30d40",
                        }
                    }
                ],
            },
        ],
        "fees": {"gas": {"amountFormatted": "0.000021"}},
        "details": {
            "currencyIn": {"amount": "100000000"},
            "currencyOut": {"amount": "99870000"},
            "totalImpact": {"percent": "-0.13"},
        },
        "requestId": "0x2a1b",
    }


class RelayRecorder:
    def __init__(self, status=200, body=None):
        self.status = status
        self.body = body if body is not None else relay_quote_response()
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.body)


@pytest.fixture
def relay():
    return RelayRecorder()


@pytest.fixture
def bridge_tool(wallet, quote_store, allowance_manager, executor, collaborators, chain_reader, relay):
    chain_reader.set_metadata(Network.ARBITRUM, USDC_ARB, 6, "USDC")
    chain_reader.set_native(Network.BASE, WALLET, ETH)
    chain_reader.set_token(Network.BASE, USDC_BASE, WALLET, 500 * 10**6)

    client = RelayClient(base_url="https://relay.test", transport=httpx.MockTransport(relay))
    tool = BridgeTool(wallet, quote_store, allowance_manager, executor)
    tool.register_provider(RelayBridgeProvider(client, allowance_manager=allowance_manager, **collaborators))
    return tool


def _request(**overrides):
    request = {
        "from_network": "base",
        "to_network": "arbitrum",
        "from_token": USDC_BASE,
        "to_token": USDC_ARB,
        "amount": "100",
    }
    request.update(overrides)
    return request


@pytest.mark.asyncio
async def test_usdc_bridge_approves_then_deposits(bridge_tool, relay, wallet):
    result = await bridge_tool.run(_request())

    assert isinstance(result, SuccessEnvelope), result
    assert result.provider == "relay-bridge"
    assert result.network == "base"
    assert result.to_network == "arbitrum"
    assert result.from_amount == "100"
    assert result.to_amount == "99.87"
    assert result.price_impact == pytest.approx(-0.13)

    payload = json.loads(relay.requests[0].content)
    assert payload["originChainId"] == 8453
    assert payload["destinationChainId"] == 42161
    assert payload["originCurrency"] == USDC_BASE
    assert payload["destinationCurrency"] == USDC_ARB
    assert payload["amount"] == "100000000"
    assert payload["tradeType"] == "EXACT_INPUT"
    assert payload["user"] == WALLET
    assert payload["recipient"] == WALLET

    approve, deposit = wallet.sent
    assert approve.to == USDC_BASE
    assert approve.data[10:74] == RELAY_RECEIVER[2:].zfill(64)
    assert deposit.to == RELAY_RECEIVER
    assert deposit.gas_limit == 200_000
    assert result.approval_hash is not None


@pytest.mark.asyncio
async def test_native_origin_uses_zero_address(bridge_tool, relay, chain_reader):
    chain_reader.set_native(Network.BASE, WALLET, 2 * ETH)

    await bridge_tool.run(
        _request(
            from_token="0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee",
            to_token="0x0000000000000000000000000000000000000000",
            amount="1",
        )
    )

    payload = json.loads(relay.requests[0].content)
    assert payload["originCurrency"] == "0x0000000000000000000000000000000000000000"
    assert payload["destinationCurrency"] == "0x0000000000000000000000000000000000000000"
    assert payload["amount"] == str(ETH)


@pytest.mark.asyncio
async def test_backend_rejection_is_price_retrieval(
    wallet, quote_store, allowance_manager, executor, collaborators, chain_reader
):
    chain_reader.set_metadata(Network.ARBITRUM, USDC_ARB, 6, "USDC")
    rejecting = RelayRecorder(status=400, body={"message": "Amount too low"})
    client = RelayClient(base_url="https://relay.test", transport=httpx.MockTransport(rejecting))
    tool = BridgeTool(wallet, quote_store, allowance_manager, executor)
    tool.register_provider(RelayBridgeProvider(client, allowance_manager=allowance_manager, **collaborators))

    result = await tool.run(_request())

    assert result.error_step == ErrorStep.PROVIDER_AVAILABILITY
    (attempt,) = result.details["attempts"]
    assert attempt["provider"] == "relay-bridge"
    assert attempt["step"] == "price_retrieval"
    assert "Amount too low" not in result.message
    assert wallet.sent == []


@pytest.mark.asyncio
async def test_same_network_is_rejected(bridge_tool):
    result = await bridge_tool.run(_request(to_network="base", to_token=USDC_BASE))

    assert result.error_step == ErrorStep.TOOL_EXECUTION


@pytest.mark.asyncio
async def test_unknown_destination(bridge_tool):
    result = await bridge_tool.run(_request(to_network="fantom"))

    assert result.error_step == ErrorStep.NETWORK_VALIDATION
    assert result.details["requestedNetwork"] == "fantom"


@pytest.mark.asyncio
async def test_solana_destination_is_not_served_by_relay(bridge_tool, relay):
    result = await bridge_tool.run(_request(to_network="solana", to_token=USDC_SOL))

    assert result.error_step == ErrorStep.PROVIDER_AVAILABILITY
    assert result.details["attempts"][0]["step"] == "provider_validation"
    assert relay.requests == []


@pytest.mark.asyncio
async def test_invalid_recipient_for_destination(bridge_tool):
    result = await bridge_tool.run(_request(recipient="not-an-address"))

    assert result.error_step == ErrorStep.TOOL_EXECUTION
