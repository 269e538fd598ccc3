"""
Quote lifecycle models and types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .chain_types import Network


class AmountType(str, Enum):
    """Whether the requested amount is what is spent or what is received."""
    INPUT = "input"
    OUTPUT = "output"


class QuoteKind(str, Enum):
    SWAP = "swap"
    BRIDGE = "bridge"
    STAKING = "staking"
    TRANSFER = "transfer"


class StakingAction(str, Enum):
    SUPPLY = "supply"
    WITHDRAW = "withdraw"
    STAKE = "stake"
    UNSTAKE = "unstake"

    @property
    def is_deposit(self) -> bool:
        return self in (StakingAction.SUPPLY, StakingAction.STAKE)


@dataclass(frozen=True)
class Token:
    """Canonical token metadata, resolved once per (address, network)."""
    address: str
    decimals: int
    symbol: str
    network: Network

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "decimals": self.decimals,
            "symbol": self.symbol,
            "network": self.network.value,
        }


@dataclass(frozen=True)
class TransactionPayload:
    """The exact unsigned transaction body a wallet must sign."""
    to: str
    data: str
    value: int
    network: Network
    gas_limit: Optional[int] = None
    last_valid_block_height: Optional[int] = None   # Solana only

    def to_dict(self) -> Dict[str, Any]:
        tx: Dict[str, Any] = {
            "to": self.to,
            "data": self.data,
            "value": str(self.value),
            "network": self.network.value,
        }
        if self.gas_limit is not None:
            tx["gasLimit"] = str(self.gas_limit)
        if self.last_valid_block_height is not None:
            tx["lastValidBlockHeight"] = self.last_valid_block_height
        return tx


@dataclass(frozen=True)
class Quote:
    """A time-bounded, provider-issued proposal plus the transaction that executes it."""
    quote_id: str
    network: Network
    from_token: Token
    to_token: Token
    from_amount: str                            # Decimal string, human units
    to_amount: str
    type: AmountType
    slippage_bps: int
    price_impact: float
    route: Tuple[str, ...]
    estimated_gas: str
    tx: TransactionPayload
    provider: str
    kind: QuoteKind = QuoteKind.SWAP

    # Variant specific
    to_network: Optional[Network] = None        # Bridge destination
    recipient: Optional[str] = None             # Transfer / bridge receiver
    action: Optional[StakingAction] = None


@dataclass(frozen=True)
class BalanceCheck:
    is_valid: bool
    message: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TokenBalance:
    token: Token
    amount: int                                 # Base units


@dataclass(frozen=True)
class VaultPosition:
    """Shares held in an ERC-4626 vault and the underlying assets they redeem for."""
    vault: Token
    asset: Token
    shares: int
    assets: int


@dataclass
class SwapParams:
    network: Network
    from_token: str
    to_token: str
    amount: str
    type: AmountType = AmountType.INPUT
    slippage_bps: int = 50


@dataclass
class BridgeParams:
    from_network: Network
    to_network: Network
    from_token: str
    to_token: str
    amount: str
    type: AmountType = AmountType.INPUT
    slippage_bps: int = 50
    recipient: Optional[str] = None

    @property
    def network(self) -> Network:
        return self.from_network


@dataclass
class StakingParams:
    network: Network
    token: str                                  # Underlying asset (deposit) or vault share
    vault: str
    amount: str
    action: StakingAction = StakingAction.SUPPLY


@dataclass
class TransferParams:
    network: Network
    token: str
    to_address: str
    amount: str


@dataclass
class ToolProgress:
    progress: int
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
