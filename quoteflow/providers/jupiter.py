"""
Jupiter swap API client for Solana.

Two calls make up a swap:
- GET /quote prices the route
- POST /swap turns that quote into a serialized, unsigned transaction

No API key required on the public endpoint.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ..config import settings


DEFAULT_JUPITER_BASE_URL = "https://lite-api.jup.ag/swap/v1"


class JupiterClient:
    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.jupiter_base_url or DEFAULT_JUPITER_BASE_URL).rstrip("/")
        self.timeout_s = timeout_s or settings.request_timeout_seconds
        self._transport = transport

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_s,
            transport=self._transport,
        ) as client:
            response = await client.request(method, path, headers={"accept": "application/json"}, **kwargs)
            response.raise_for_status()
            payload = response.json()

        if not isinstance(payload, dict):
            raise ValueError("Unexpected response from Jupiter API")
        if payload.get("error"):
            raise ValueError(f"Jupiter error: {payload['error']}")
        return payload

    async def quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        *,
        slippage_bps: int = 50,
        swap_mode: str = "ExactIn",
    ) -> Dict[str, Any]:
        """Price a route; ``amount`` is in base units of the input (ExactIn) or output (ExactOut) mint."""
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": slippage_bps,
            "swapMode": swap_mode,
        }
        return await self._request("GET", "/quote", params=params)

    async def swap(self, quote_response: Dict[str, Any], user_public_key: str) -> Dict[str, Any]:
        """Build the swap transaction; returns swapTransaction (base64) and lastValidBlockHeight."""
        body = {
            "quoteResponse": quote_response,
            "userPublicKey": user_public_key,
            "wrapAndUnwrapSol": True,
            "dynamicComputeUnitLimit": True,
        }
        return await self._request("POST", "/swap", json=body)
