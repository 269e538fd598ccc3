"""
Wallet backed by an external JSON-RPC signer (Clef, Web3Signer, a dev node).

Keys never enter this process: the signer exposes ``eth_accounts``,
``eth_sendTransaction`` and ``personal_sign``. Inclusion is tracked on the
chain's own RPC endpoint.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..core.chain_types import Network, get_metadata, is_solana_network
from ..core.errors import ErrorStep, StructuredError
from ..core.execution.wallet import Receipt
from ..core.models import TransactionPayload
from .evm_rpc import EvmRpcClient, RpcError


logger = logging.getLogger(__name__)


class JsonRpcSignerWallet:
    def __init__(
        self,
        signer_url: Optional[str] = None,
        evm: Optional[EvmRpcClient] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.signer_url = signer_url or settings.signer_rpc_url
        self.evm = evm or EvmRpcClient()
        self._client = client or httpx.AsyncClient(timeout=settings.request_timeout_seconds)
        self._ids = itertools.count(1)
        self._address: Optional[str] = None

    async def _signer_call(self, method: str, params: List[Any]) -> Any:
        if not self.signer_url:
            raise StructuredError(
                ErrorStep.WALLET_ACCESS,
                "No signer configured",
                {"setting": "signer_rpc_url"},
            )

        payload = {"jsonrpc": "2.0", "method": method, "params": params, "id": next(self._ids)}
        response = await self._client.post(self.signer_url, json=payload)
        response.raise_for_status()
        result = response.json()
        if "error" in result:
            raise RpcError(method, result["error"])
        return result.get("result")

    def _require_evm(self, network: Network) -> None:
        if is_solana_network(network):
            raise StructuredError(
                ErrorStep.WALLET_ACCESS,
                f"The configured signer cannot sign for {network.value}",
                {"network": network.value},
            )

    async def get_address(self, network: Network) -> str:
        self._require_evm(network)
        if self._address is None:
            accounts = await self._signer_call("eth_accounts", [])
            if not accounts:
                raise StructuredError(
                    ErrorStep.WALLET_ACCESS,
                    "Signer exposes no accounts",
                    {"network": network.value},
                )
            self._address = accounts[0]
        return self._address

    async def sign_message(self, network: Network, message: str) -> str:
        address = await self.get_address(network)
        return await self._signer_call("personal_sign", ["0x" + message.encode("utf-8").hex(), address])

    async def sign_and_send_transaction(self, network: Network, payload: TransactionPayload) -> Receipt:
        address = await self.get_address(network)
        tx: Dict[str, Any] = {
            "from": address,
            "to": payload.to,
            "data": payload.data,
            "value": hex(payload.value),
            "chainId": hex(get_metadata(network).chain_id),
        }
        if payload.gas_limit is not None:
            tx["gas"] = hex(payload.gas_limit)

        tx_hash = await self._signer_call("eth_sendTransaction", [tx])
        logger.info(f"Signer submitted {tx_hash} on {network.value}")

        async def wait():
            return await self.evm.wait_for_receipt(network, tx_hash)

        return Receipt(tx_hash, network, wait)

    async def close(self) -> None:
        await self._client.aclose()
