"""
Token resolution: address or native sentinel -> canonical Token.

Results are memoized for the process lifetime, keyed by (address, network) with EVM
addresses lowercased.
Token metadata is immutable on-chain, so there is no invalidation.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol, Tuple

from .chain_types import (
    Network,
    get_metadata,
    is_native_token,
    is_solana_network,
    is_valid_address,
    native_token_address,
)
from .errors import ErrorStep, StructuredError
from .models import Token


logger = logging.getLogger(__name__)


# Well known SPL mints; the Solana RPC exposes decimals but not symbols.
KNOWN_TOKENS: Dict[Network, Dict[str, Tuple[str, int]]] = {
    Network.SOLANA: {
        "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v": ("USDC", 6),
        "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB": ("USDT", 6),
        "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN": ("JUP", 6),
        "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263": ("BONK", 5),
    },
}


class TokenMetadataReader(Protocol):
    async def get_token_metadata(self, network: Network, token: str) -> Dict[str, Any]:
        ...


class TokenNotFoundError(StructuredError):
    def __init__(self, address: str, network: Network, error: Optional[str] = None):
        details: Dict[str, Any] = {"token": address, "network": network.value}
        if error:
            details["error"] = error
        super().__init__(
            ErrorStep.TOKEN_NOT_FOUND,
            f"Token {address} not found on {network.value}",
            details,
        )


class TokenResolver:
    def __init__(self, chain_reader: TokenMetadataReader):
        self.chain_reader = chain_reader
        self._cache: Dict[Tuple[str, Network], Token] = {}

    def _key(self, address: str, network: Network) -> Tuple[str, Network]:
        # Base58 mints are case sensitive; only EVM hex addresses fold.
        if is_solana_network(network):
            return address, network
        return address.lower(), network

    async def resolve(self, address: str, network: Network) -> Token:
        key = self._key(address, network)
        token = self._cache.get(key)
        if token is not None:
            return token

        token = await self._load(address, network)
        self._cache[key] = token
        return token

    async def _load(self, address: str, network: Network) -> Token:
        if is_native_token(address, network):
            meta = get_metadata(network)
            return Token(
                address=native_token_address(network),
                decimals=meta.native_decimals,
                symbol=meta.native_symbol,
                network=network,
            )

        if not is_valid_address(address, network):
            raise TokenNotFoundError(address, network, "invalid address format")

        known = KNOWN_TOKENS.get(network, {}).get(address)
        if known is not None:
            symbol, decimals = known
            return Token(address=address, decimals=decimals, symbol=symbol, network=network)

        try:
            metadata = await self.chain_reader.get_token_metadata(network, address)
            decimals = int(metadata["decimals"])
        except Exception as e:
            logger.warning(f"Token metadata lookup failed for {address} on {network.value}: {e!r}")
            raise TokenNotFoundError(address, network, str(e) or type(e).__name__) from e

        if decimals < 0:
            raise TokenNotFoundError(address, network, f"invalid decimals {decimals}")
        symbol = metadata.get("symbol") or address[:6]
        return Token(address=address, decimals=decimals, symbol=symbol, network=network)
