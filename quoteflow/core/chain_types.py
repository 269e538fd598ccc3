"""
Network identification types and utilities.

Networks come in two families:
- account-model EVM chains (identified by an integer chain ID, ERC-20 allowances)
- ledger-model Solana (no allowance stage, block-height expiring transactions)

Native currency is addressed through sentinel addresses so that callers can use the same
`token` argument for native and contract tokens.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class Network(str, Enum):
    """Supported networks."""
    ETHEREUM = "ethereum"
    BNB = "bnb"
    POLYGON = "polygon"
    ARBITRUM = "arbitrum"
    OPTIMISM = "optimism"
    BASE = "base"
    SOLANA = "solana"


class ChainKind(str, Enum):
    EVM = "evm"
    SOLANA = "solana"


EVM_NATIVE_TOKEN_ADDRESS = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"
SOL_NATIVE_TOKEN_ADDRESS = "So11111111111111111111111111111111111111111"
# Wrapped SOL mint; accepted as an alias for native SOL
WSOL_MINT = "So11111111111111111111111111111111111111112"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class NetworkMetadata:
    name: str
    kind: ChainKind
    chain_id: Optional[int]
    native_symbol: str
    native_decimals: int
    aliases: tuple = ()


NETWORK_METADATA: Dict[Network, NetworkMetadata] = {
    Network.ETHEREUM: NetworkMetadata("Ethereum", ChainKind.EVM, 1, "ETH", 18, ("eth", "mainnet", "ethereum mainnet")),
    Network.BNB: NetworkMetadata("BNB Chain", ChainKind.EVM, 56, "BNB", 18, ("bsc", "binance", "bnb chain")),
    Network.POLYGON: NetworkMetadata("Polygon", ChainKind.EVM, 137, "POL", 18, ("matic", "pol")),
    Network.ARBITRUM: NetworkMetadata("Arbitrum", ChainKind.EVM, 42161, "ETH", 18, ("arb", "arbitrum one")),
    Network.OPTIMISM: NetworkMetadata("Optimism", ChainKind.EVM, 10, "ETH", 18, ("op",)),
    Network.BASE: NetworkMetadata("Base", ChainKind.EVM, 8453, "ETH", 18, ("base mainnet",)),
    Network.SOLANA: NetworkMetadata("Solana", ChainKind.SOLANA, None, "SOL", 9, ("sol",)),
}

_ALIAS_TO_NETWORK: Dict[str, Network] = {}
for _network, _meta in NETWORK_METADATA.items():
    _ALIAS_TO_NETWORK[_network.value] = _network
    for _alias in _meta.aliases:
        _ALIAS_TO_NETWORK[_alias] = _network

_EVM_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_SOLANA_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def get_metadata(network: Network) -> NetworkMetadata:
    return NETWORK_METADATA[network]


def is_solana_network(network: Network) -> bool:
    """Check if the network uses the Solana ledger model."""
    return NETWORK_METADATA[network].kind == ChainKind.SOLANA


def is_evm_network(network: Network) -> bool:
    return NETWORK_METADATA[network].kind == ChainKind.EVM


def lookup_network(value: str | Network | None) -> Optional[Network]:
    """Resolve a user supplied network name or alias; None when unknown."""
    if value is None:
        return None
    if isinstance(value, Network):
        return value
    return _ALIAS_TO_NETWORK.get(value.strip().lower())


def native_token_address(network: Network) -> str:
    if is_solana_network(network):
        return SOL_NATIVE_TOKEN_ADDRESS
    return EVM_NATIVE_TOKEN_ADDRESS


def is_native_token(address: str, network: Network) -> bool:
    """True for the native currency sentinel of the network (and wSOL on Solana)."""
    if not address:
        return False
    if is_solana_network(network):
        return address in (SOL_NATIVE_TOKEN_ADDRESS, WSOL_MINT)
    return address.lower() in (EVM_NATIVE_TOKEN_ADDRESS, ZERO_ADDRESS)


def is_valid_address(address: str, network: Network) -> bool:
    """Format check for wallet and token addresses on the given network."""
    if not address:
        return False
    if is_solana_network(network):
        return bool(_SOLANA_ADDRESS_RE.match(address))
    return bool(_EVM_ADDRESS_RE.match(address))
