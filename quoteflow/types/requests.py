"""
Request models for the tool entry points.

Network and amount stay plain strings here; the tools validate them and answer bad
input with an error envelope.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.models import AmountType, StakingAction


class _Request(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SwapRequest(_Request):
    network: str = Field(description="Network name, e.g. ethereum, base, solana")
    from_token: str = Field(description="Address of the token to sell; native sentinel for ETH/SOL")
    to_token: str = Field(description="Address of the token to buy")
    amount: str = Field(description="Amount in human units")
    type: AmountType = Field(default=AmountType.INPUT, description="input: amount is spent; output: amount is received")
    slippage_bps: Optional[int] = Field(default=None, ge=0, le=5000, description="Allowed slippage in basis points")
    provider: Optional[str] = Field(default=None, description="Force a specific provider")
    selection: Literal["first", "best"] = Field(
        default="first",
        description="first: first registered provider with failover; best: compare all providers",
    )


class BridgeRequest(_Request):
    from_network: str
    to_network: str
    from_token: str
    to_token: str
    amount: str
    type: AmountType = AmountType.INPUT
    slippage_bps: Optional[int] = Field(default=None, ge=0, le=5000)
    recipient: Optional[str] = Field(default=None, description="Receiver on the destination network; defaults to the wallet")
    provider: Optional[str] = None


class StakingRequest(_Request):
    network: str
    token: str = Field(description="Underlying asset of the vault")
    vault: str = Field(description="Vault contract address")
    amount: str = Field(description="Amount of the underlying asset, human units")
    action: StakingAction = StakingAction.SUPPLY
    provider: Optional[str] = None


class TransferRequest(_Request):
    network: str
    token: str = Field(description="Token address; native sentinel for the network currency")
    to_address: str
    amount: str
    provider: Optional[str] = None


class WalletBalanceRequest(_Request):
    address: Optional[str] = Field(default=None, description="Wallet to inspect; defaults to the configured wallet")
    network: Optional[str] = Field(default=None, description="Limit the report to one network; all networks otherwise")
    tokens: List[str] = Field(default_factory=list, description="Token addresses to report besides the watched ones")


class StakingPositionsRequest(_Request):
    network: str
    address: Optional[str] = Field(default=None, description="Wallet to inspect; defaults to the configured wallet")
