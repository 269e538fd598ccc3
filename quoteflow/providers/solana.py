"""Solana JSON-RPC reader for balances and mint metadata."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..core.chain_types import Network


logger = logging.getLogger(__name__)

class SolanaRpcError(Exception):
    """Error in a Solana RPC call."""


class SolanaRpcClient:
    """
    Reader for the Solana ledger.

    Balances are returned in base units (lamports for SOL, raw amount for SPL tokens).
    """

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        commitment: str = "confirmed",
        max_retries: int = 2,
        timeout_s: Optional[float] = None,
    ) -> None:
        self.rpc_url = rpc_url or settings.rpc_urls.get(Network.SOLANA.value, "https://api.mainnet-beta.solana.com")
        self.commitment = commitment
        self.max_retries = max(1, max_retries)
        self._client = client or httpx.AsyncClient(timeout=timeout_s or settings.request_timeout_seconds)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _rpc_call(self, method: str, params: List[Any]) -> Any:
        """Make an RPC call to the Solana node, retrying transport failures only."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }

        for attempt in range(self.max_retries):
            try:
                response = await self._client.post(
                    self.rpc_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                data = response.json()
                break
            except httpx.RequestError as e:
                if attempt == self.max_retries - 1:
                    raise SolanaRpcError(f"{method} failed: {e}") from e
                logger.warning(f"Solana RPC {method} attempt {attempt + 1} failed: {e}")
                await asyncio.sleep(0.5 * (attempt + 1))

        if "error" in data:
            error = data["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise SolanaRpcError(f"RPC error: {message}")

        return data.get("result")

    async def get_balance(self, address: str) -> int:
        """SOL balance in lamports."""
        result = await self._rpc_call("getBalance", [address, {"commitment": self.commitment}])
        return int((result or {}).get("value", 0))

    async def get_token_balance(self, owner: str, mint: str) -> int:
        """Sum of the owner's token accounts for a mint, in base units."""
        result = await self._rpc_call(
            "getTokenAccountsByOwner",
            [owner, {"mint": mint}, {"encoding": "jsonParsed", "commitment": self.commitment}],
        )
        total = 0
        for item in (result or {}).get("value", []):
            info = item.get("account", {}).get("data", {}).get("parsed", {}).get("info", {})
            total += int(info.get("tokenAmount", {}).get("amount", 0))
        return total

    async def get_mint_info(self, mint: str) -> Dict[str, Any]:
        result = await self._rpc_call(
            "getAccountInfo",
            [mint, {"encoding": "jsonParsed", "commitment": self.commitment}],
        )
        value = (result or {}).get("value")
        if not value:
            raise SolanaRpcError(f"Mint account {mint} not found")

        parsed = value.get("data", {}).get("parsed", {}) if isinstance(value.get("data"), dict) else {}
        if parsed.get("type") != "mint":
            raise SolanaRpcError(f"Account {mint} is not a token mint")
        info = parsed.get("info", {})
        return {"decimals": int(info.get("decimals", 0))}
