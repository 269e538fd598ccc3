"""
Tests for the Relay and Jupiter HTTP clients, the JSON-RPC signer wallet and ChainReader routing.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from quoteflow.core.chain_types import EVM_NATIVE_TOKEN_ADDRESS, Network
from quoteflow.core.errors import ErrorStep, StructuredError
from quoteflow.core.execution.wallet import FinalReceipt
from quoteflow.core.models import TransactionPayload
from quoteflow.providers.chain import ChainReader
from quoteflow.providers.jupiter import JupiterClient
from quoteflow.providers.relay import RelayClient
from quoteflow.providers.signer import JsonRpcSignerWallet

from tests.fakes import RECIPIENT, SOL_WALLET, USDC_BASE, USDC_SOL, WALLET


# ============================================================================
# RelayClient
# ============================================================================


@pytest.mark.asyncio
async def test_relay_quote_posts_payload():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"steps": [], "requestId": "0x1"})

    client = RelayClient(base_url="https://relay.test/", transport=httpx.MockTransport(handler))
    result = await client.quote({"amount": "1"})

    assert result["requestId"] == "0x1"
    assert seen[0].method == "POST"
    assert str(seen[0].url) == "https://relay.test/quote"
    assert json.loads(seen[0].content) == {"amount": "1"}


@pytest.mark.asyncio
async def test_relay_http_errors_propagate():
    client = RelayClient(
        base_url="https://relay.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(422, json={"message": "bad"})),
    )

    with pytest.raises(httpx.HTTPStatusError):
        await client.quote({})


# ============================================================================
# JupiterClient
# ============================================================================


@pytest.mark.asyncio
async def test_jupiter_quote_query_params():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"inAmount": "1", "outAmount": "2"})

    client = JupiterClient(base_url="https://jup.test/swap/v1", transport=httpx.MockTransport(handler))
    await client.quote("So11111111111111111111111111111111111111112", USDC_SOL, 1000, slippage_bps=30)

    params = seen[0].url.params
    assert seen[0].url.path == "/swap/v1/quote"
    assert params["amount"] == "1000"
    assert params["slippageBps"] == "30"
    assert params["swapMode"] == "ExactIn"


@pytest.mark.asyncio
async def test_jupiter_swap_body():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"swapTransaction": "AQ==", "lastValidBlockHeight": 5})

    client = JupiterClient(base_url="https://jup.test/swap/v1", transport=httpx.MockTransport(handler))
    result = await client.swap({"inAmount": "1"}, SOL_WALLET)

    assert result["swapTransaction"] == "AQ=="
    assert seen[0]["userPublicKey"] == SOL_WALLET
    assert seen[0]["quoteResponse"] == {"inAmount": "1"}
    assert seen[0]["wrapAndUnwrapSol"] is True


@pytest.mark.asyncio
async def test_jupiter_error_payload_raises():
    client = JupiterClient(
        base_url="https://jup.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"error": "No routes found"})),
    )

    with pytest.raises(ValueError, match="No routes found"):
        await client.quote(USDC_SOL, USDC_SOL, 1)


# ============================================================================
# JsonRpcSignerWallet
# ============================================================================


class FakeSigner:
    def __init__(self):
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append(body)
        results = {
            "eth_accounts": [WALLET],
            "eth_sendTransaction": "0xfeed",
            "personal_sign": "0xsig",
        }
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": results[body["method"]]})


@pytest.mark.asyncio
async def test_signer_wallet_sends_and_waits():
    signer = FakeSigner()
    evm = MagicMock()
    evm.wait_for_receipt = AsyncMock(return_value=FinalReceipt(hash="0xfeed", network=Network.BASE, block_number=7))
    wallet = JsonRpcSignerWallet(
        "https://signer.test",
        evm,
        client=httpx.AsyncClient(transport=httpx.MockTransport(signer)),
    )

    payload = TransactionPayload(to=RECIPIENT, data="0x", value=10, network=Network.BASE, gas_limit=21000)
    receipt = await wallet.sign_and_send_transaction(Network.BASE, payload)
    final = await receipt.wait()

    assert receipt.hash == "0xfeed"
    assert final.block_number == 7
    sent = signer.calls[-1]
    assert sent["method"] == "eth_sendTransaction"
    assert sent["params"][0] == {
        "from": WALLET,
        "to": RECIPIENT,
        "data": "0x",
        "value": "0xa",
        "chainId": hex(8453),
        "gas": hex(21000),
    }
    evm.wait_for_receipt.assert_awaited_once_with(Network.BASE, "0xfeed")


@pytest.mark.asyncio
async def test_signer_wallet_caches_address():
    signer = FakeSigner()
    wallet = JsonRpcSignerWallet(
        "https://signer.test",
        MagicMock(),
        client=httpx.AsyncClient(transport=httpx.MockTransport(signer)),
    )

    assert await wallet.get_address(Network.BASE) == WALLET
    assert await wallet.get_address(Network.ETHEREUM) == WALLET
    assert [c["method"] for c in signer.calls] == ["eth_accounts"]


@pytest.mark.asyncio
async def test_signer_wallet_refuses_solana():
    wallet = JsonRpcSignerWallet("https://signer.test", MagicMock(), client=MagicMock())

    with pytest.raises(StructuredError) as exc:
        await wallet.get_address(Network.SOLANA)

    assert exc.value.step == ErrorStep.WALLET_ACCESS


@pytest.mark.asyncio
async def test_signer_wallet_without_url():
    wallet = JsonRpcSignerWallet("", MagicMock(), client=MagicMock())
    wallet.signer_url = ""

    with pytest.raises(StructuredError) as exc:
        await wallet.get_address(Network.BASE)

    assert exc.value.step == ErrorStep.WALLET_ACCESS


# ============================================================================
# ChainReader
# ============================================================================


@pytest.mark.asyncio
async def test_chain_reader_routes_by_network_kind():
    evm, solana = MagicMock(), MagicMock()
    evm.get_native_balance = AsyncMock(return_value=1)
    evm.get_token_balance = AsyncMock(return_value=2)
    solana.get_balance = AsyncMock(return_value=3)
    solana.get_token_balance = AsyncMock(return_value=4)
    solana.get_mint_info = AsyncMock(return_value={"decimals": 6})
    reader = ChainReader(evm, solana)

    assert await reader.get_native_balance(Network.BASE, WALLET) == 1
    assert await reader.get_token_balance(Network.BASE, USDC_BASE, WALLET) == 2
    assert await reader.get_token_balance(Network.BASE, EVM_NATIVE_TOKEN_ADDRESS, WALLET) == 1
    assert await reader.get_native_balance(Network.SOLANA, SOL_WALLET) == 3
    assert await reader.get_token_balance(Network.SOLANA, USDC_SOL, SOL_WALLET) == 4
    assert await reader.get_token_metadata(Network.SOLANA, USDC_SOL) == {"decimals": 6, "symbol": None}

    solana.get_token_balance.assert_awaited_once_with(SOL_WALLET, USDC_SOL)


@pytest.mark.asyncio
async def test_chain_reader_has_no_solana_allowances():
    reader = ChainReader(MagicMock(), MagicMock())

    with pytest.raises(ValueError):
        await reader.get_allowance(Network.SOLANA, USDC_SOL, SOL_WALLET, SOL_WALLET)
