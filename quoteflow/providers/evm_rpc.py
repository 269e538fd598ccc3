"""Async JSON-RPC client for EVM chains."""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..core.chain_types import Network
from ..core.execution.tx_builder import (
    ERC20_ALLOWANCE_SELECTOR,
    ERC20_BALANCE_OF_SELECTOR,
    ERC20_DECIMALS_SELECTOR,
    ERC20_SYMBOL_SELECTOR,
    decode_string,
    decode_uint256,
    encode_call,
    parse_quantity,
)
from ..core.execution.wallet import FinalReceipt


logger = logging.getLogger(__name__)


class RpcError(Exception):
    """JSON-RPC error object returned by a node."""

    def __init__(self, method: str, error: Any):
        super().__init__(f"RPC error in {method}: {error}")
        self.method = method
        self.error = error


class ConfirmationTimeoutError(Exception):
    """Receipt did not appear within the configured timeout."""


class EvmRpcClient:
    """
    Minimal EVM JSON-RPC reader.

    One shared httpx.AsyncClient is used for every network; URLs come from
    ``settings.rpc_urls`` unless overridden.
    """

    def __init__(
        self,
        rpc_urls: Optional[Dict[str, str]] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout_s: Optional[float] = None,
        confirmation_timeout_s: Optional[float] = None,
        poll_interval_s: Optional[float] = None,
    ) -> None:
        self._rpc_urls = dict(rpc_urls if rpc_urls is not None else settings.rpc_urls)
        self._client = client or httpx.AsyncClient(timeout=timeout_s or settings.request_timeout_seconds)
        self.confirmation_timeout_s = confirmation_timeout_s or settings.confirmation_timeout_seconds
        self.poll_interval_s = poll_interval_s or settings.confirmation_poll_seconds
        self._ids = itertools.count(1)

    def rpc_url(self, network: Network) -> str:
        url = self._rpc_urls.get(network.value)
        if not url:
            raise ValueError(f"No RPC URL configured for network {network.value}")
        return url

    async def _rpc_call(self, network: Network, method: str, params: List[Any]) -> Any:
        """Make an RPC call to the chain."""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }

        response = await self._client.post(self.rpc_url(network), json=payload)
        response.raise_for_status()
        result = response.json()

        if "error" in result:
            raise RpcError(method, result["error"])

        return result.get("result")

    async def eth_call(self, network: Network, to: str, data: str) -> str:
        return await self._rpc_call(network, "eth_call", [{"to": to, "data": data}, "latest"])

    async def get_native_balance(self, network: Network, address: str) -> int:
        result = await self._rpc_call(network, "eth_getBalance", [address, "latest"])
        return parse_quantity(result)

    async def get_token_balance(self, network: Network, token: str, owner: str) -> int:
        result = await self.eth_call(network, token, encode_call(ERC20_BALANCE_OF_SELECTOR, owner))
        return decode_uint256(result)

    async def get_allowance(self, network: Network, token: str, owner: str, spender: str) -> int:
        result = await self.eth_call(network, token, encode_call(ERC20_ALLOWANCE_SELECTOR, owner, spender))
        return decode_uint256(result)

    async def get_token_metadata(self, network: Network, token: str) -> Dict[str, Any]:
        decimals_raw = await self.eth_call(network, token, ERC20_DECIMALS_SELECTOR)
        if not decimals_raw or decimals_raw == "0x":
            raise ValueError(f"{token} does not implement decimals() on {network.value}")
        symbol_raw = await self.eth_call(network, token, ERC20_SYMBOL_SELECTOR)
        return {
            "decimals": decode_uint256(decimals_raw),
            "symbol": decode_string(symbol_raw) or "UNKNOWN",
        }

    async def get_transaction_receipt(self, network: Network, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self._rpc_call(network, "eth_getTransactionReceipt", [tx_hash])

    async def wait_for_receipt(self, network: Network, tx_hash: str) -> FinalReceipt:
        """Poll for a receipt until it appears or the confirmation timeout elapses."""
        deadline = time.monotonic() + self.confirmation_timeout_s

        while True:
            receipt = await self.get_transaction_receipt(network, tx_hash)
            if receipt:
                return FinalReceipt(
                    hash=tx_hash,
                    network=network,
                    status=parse_quantity(receipt.get("status", "0x1")),
                    block_number=parse_quantity(receipt.get("blockNumber")),
                    gas_used=parse_quantity(receipt.get("gasUsed")),
                )

            if time.monotonic() >= deadline:
                raise ConfirmationTimeoutError(
                    f"Confirmation timeout after {self.confirmation_timeout_s}s for {tx_hash}"
                )
            await asyncio.sleep(self.poll_interval_s)

    async def close(self) -> None:
        """Close HTTP client."""
        await self._client.aclose()
