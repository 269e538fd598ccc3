"""
ChainReader routes on-chain reads to the EVM or Solana client by network kind.

The core pipeline (amount adjustment, balance and allowance checks, token resolution)
only depends on this surface, so tests substitute an in-memory reader.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..core.chain_types import Network, is_native_token, is_solana_network
from .evm_rpc import EvmRpcClient
from .solana import SolanaRpcClient


class ChainReader:
    def __init__(
        self,
        evm: Optional[EvmRpcClient] = None,
        solana: Optional[SolanaRpcClient] = None,
    ) -> None:
        self.evm = evm or EvmRpcClient()
        self.solana = solana or SolanaRpcClient()

    async def get_native_balance(self, network: Network, address: str) -> int:
        if is_solana_network(network):
            return await self.solana.get_balance(address)
        return await self.evm.get_native_balance(network, address)

    async def get_token_balance(self, network: Network, token: str, owner: str) -> int:
        """Balance in base units; native sentinels read the native balance."""
        if is_native_token(token, network):
            return await self.get_native_balance(network, owner)
        if is_solana_network(network):
            return await self.solana.get_token_balance(owner, token)
        return await self.evm.get_token_balance(network, token, owner)

    async def get_allowance(self, network: Network, token: str, owner: str, spender: str) -> int:
        if is_solana_network(network):
            raise ValueError("Allowances do not exist on Solana")
        return await self.evm.get_allowance(network, token, owner, spender)

    async def get_token_metadata(self, network: Network, token: str) -> Dict[str, Any]:
        """Returns ``{"decimals": int, "symbol": str | None}``."""
        if is_solana_network(network):
            info = await self.solana.get_mint_info(token)
            return {"decimals": info["decimals"], "symbol": None}
        return await self.evm.get_token_metadata(network, token)

    async def eth_call(self, network: Network, to: str, data: str) -> str:
        return await self.evm.eth_call(network, to, data)

    async def close(self) -> None:
        await self.evm.close()
        await self.solana.close()
