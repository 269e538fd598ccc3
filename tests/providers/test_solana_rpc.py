"""
Tests for the Solana RPC reader.
"""

import json

import httpx
import pytest

from quoteflow.providers.solana import SolanaRpcClient, SolanaRpcError

from tests.fakes import SOL_WALLET, USDC_SOL


def _client(handler, **kwargs):
    return SolanaRpcClient(
        "https://solana.rpc.test",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        **kwargs,
    )


def _respond(result):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    return handler


@pytest.mark.asyncio
async def test_sol_balance_in_lamports():
    client = _client(_respond({"context": {"slot": 1}, "value": 2_500_000_000}))

    assert await client.get_balance(SOL_WALLET) == 2_500_000_000


@pytest.mark.asyncio
async def test_token_balance_sums_accounts():
    def account(amount):
        return {"account": {"data": {"parsed": {"info": {"tokenAmount": {"amount": str(amount), "decimals": 6}}}}}}

    client = _client(_respond({"value": [account(1_000_000), account(250_000)]}))

    assert await client.get_token_balance(SOL_WALLET, USDC_SOL) == 1_250_000


@pytest.mark.asyncio
async def test_mint_info():
    client = _client(
        _respond({"value": {"data": {"parsed": {"type": "mint", "info": {"decimals": 6}}}}})
    )

    assert await client.get_mint_info(USDC_SOL) == {"decimals": 6}


@pytest.mark.asyncio
async def test_missing_mint():
    client = _client(_respond({"value": None}))

    with pytest.raises(SolanaRpcError):
        await client.get_mint_info(USDC_SOL)


@pytest.mark.asyncio
async def test_rpc_error_is_raised():
    def handler(request):
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "Invalid param"}})

    with pytest.raises(SolanaRpcError, match="Invalid param"):
        await _client(handler).get_balance(SOL_WALLET)


@pytest.mark.asyncio
async def test_transport_errors_are_retried():
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("connection refused")
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {"value": 7}})

    assert await _client(handler, max_retries=2).get_balance(SOL_WALLET) == 7
    assert len(attempts) == 2

