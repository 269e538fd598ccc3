from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.errors import ErrorStep
from ..core.amounts import format_units
from ..core.models import AmountType, Token, TokenBalance, VaultPosition


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TokenInfo(_CamelModel):
    address: str = Field(description="Token address, mint, or native sentinel")
    symbol: str
    decimals: int = Field(ge=0)
    network: str

    @classmethod
    def from_token(cls, token: Token) -> "TokenInfo":
        return cls(
            address=token.address,
            symbol=token.symbol,
            decimals=token.decimals,
            network=token.network.value,
        )


class SuccessEnvelope(_CamelModel):
    status: Literal["success"] = "success"
    provider: str = Field(description="Provider that produced the executed quote")
    from_token: TokenInfo
    to_token: TokenInfo
    from_amount: str = Field(description="Amount spent, human units")
    to_amount: str = Field(description="Amount received (or expected), human units")
    transaction_hash: str
    network: str
    price_impact: Optional[float] = None
    type: AmountType = AmountType.INPUT
    quote_id: Optional[str] = None
    approval_hash: Optional[str] = Field(default=None, description="Approval submitted before the spend, if any")

    # Variant specific
    to_network: Optional[str] = None
    to_address: Optional[str] = None
    action: Optional[str] = None


class ErrorEnvelope(_CamelModel):
    status: Literal["error"] = "error"
    error_step: ErrorStep
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    suggestion: str


ToolResult = Union[SuccessEnvelope, ErrorEnvelope]


# ============================================================================
# Read-only tools
# ============================================================================


class TokenBalanceInfo(TokenInfo):
    balance: str = Field(description="Balance in human units")

    @classmethod
    def from_balance(cls, balance: TokenBalance) -> "TokenBalanceInfo":
        token = balance.token
        return cls(
            address=token.address,
            symbol=token.symbol,
            decimals=token.decimals,
            network=token.network.value,
            balance=format_units(balance.amount, token.decimals),
        )


class NetworkBalances(_CamelModel):
    address: str
    tokens: List[TokenBalanceInfo]
    errors: Optional[Dict[str, str]] = Field(default=None, description="Tokens that could not be read, by address")


class BalanceEnvelope(_CamelModel):
    status: Literal["success"] = "success"
    results: Dict[str, NetworkBalances] = Field(description="Balances keyed by network name")
    errors: Optional[Dict[str, str]] = Field(default=None, description="Networks that could not be read")


class VaultPositionInfo(_CamelModel):
    provider: str
    vault: TokenInfo
    asset: TokenInfo
    shares: str = Field(description="Vault shares held, human units")
    assets: str = Field(description="Underlying assets the shares redeem for, human units")

    @classmethod
    def from_position(cls, provider: str, position: VaultPosition) -> "VaultPositionInfo":
        return cls(
            provider=provider,
            vault=TokenInfo.from_token(position.vault),
            asset=TokenInfo.from_token(position.asset),
            shares=format_units(position.shares, position.vault.decimals),
            assets=format_units(position.assets, position.asset.decimals),
        )


class PositionsEnvelope(_CamelModel):
    status: Literal["success"] = "success"
    network: str
    address: str
    positions: List[VaultPositionInfo]
    errors: Optional[Dict[str, str]] = Field(default=None, description="Providers that could not be read")
