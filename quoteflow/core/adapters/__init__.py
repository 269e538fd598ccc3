"""Backend adapters implementing the quote provider contract."""

from .base import AllowanceSupport, QuoteProvider, new_quote_id
from .jupiter import JupiterSwapProvider
from .relay import RelayBridgeProvider, RelaySwapProvider
from .transfer import TransferProvider
from .vault import VaultStakingProvider

__all__ = [
    "AllowanceSupport",
    "QuoteProvider",
    "new_quote_id",
    "JupiterSwapProvider",
    "RelayBridgeProvider",
    "RelaySwapProvider",
    "TransferProvider",
    "VaultStakingProvider",
]
