"""Async client for Relay's public swap and bridge API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings


logger = logging.getLogger(__name__)

DEFAULT_RELAY_BASE_URL = "https://api.relay.link"


class RelayClient:
    """Thin wrapper around https://api.relay.link endpoints."""

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        configured = base_url or settings.relay_base_url
        if configured:
            self.base_urls: List[str] = [configured.rstrip("/")]
        else:
            self.base_urls = [DEFAULT_RELAY_BASE_URL]
        self.timeout_s = timeout_s or settings.request_timeout_seconds
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "accept": "application/json, text/plain, */*",
            "content-type": "application/json",
            "user-agent": "QuoteflowRelayClient/0.1",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        merged_headers = {**self._headers(), **(headers or {})}
        last_error: Optional[Exception] = None

        for index, base_url in enumerate(self.base_urls):
            try:
                async with httpx.AsyncClient(
                    base_url=base_url,
                    timeout=self.timeout_s,
                    transport=self._transport,
                ) as client:
                    response = await client.request(method, path, json=json, headers=merged_headers, **kwargs)
                    response.raise_for_status()
                    return response
            except httpx.HTTPStatusError as exc:
                # Relay returns JSON error bodies with useful context; stop early unless another host is left.
                if exc.response.status_code in (404, 405) and index < len(self.base_urls) - 1:
                    last_error = exc
                    continue
                raise
            except httpx.RequestError as exc:
                last_error = exc
                continue

        if last_error is not None:
            raise last_error
        raise RuntimeError("All Relay hosts failed without providing an error response")

    async def quote(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Request a swap or bridge quote from Relay.

        `payload` follows the schema documented at https://docs.relay.link/
        (user, originChainId, destinationChainId, originCurrency, destinationCurrency,
        amount, tradeType, recipient, slippageTolerance).
        """

        resp = await self._request("POST", "/quote", json=payload)
        return resp.json()
