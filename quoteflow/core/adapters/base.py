"""Backend adapter contract shared by every quote provider."""

from __future__ import annotations

import secrets
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..allowance import AllowanceManager
from ..amounts import AmountAdjuster, to_base_units
from ..balance import BalanceValidator
from ..chain_types import Network
from ..errors import ErrorStep, StructuredError, ZeroAmountError
from ..models import BalanceCheck, Quote, QuoteKind, Token, TransactionPayload
from ..tokens import TokenResolver


def new_quote_id() -> str:
    """Random 32-byte hex quote identifier."""
    return secrets.token_hex(32)


def backend_error(provider: str, error: Exception, **details: Any) -> StructuredError:
    """Classify a failed backend call; HTTP bodies stay in details only."""
    info: Dict[str, Any] = {"provider": provider, "error": str(error) or type(error).__name__, **details}
    if isinstance(error, httpx.HTTPStatusError):
        info["status"] = error.response.status_code
        info["body"] = error.response.text[:2000]
    return StructuredError(ErrorStep.PRICE_RETRIEVAL, f"Failed to get a quote from {provider}.", info)


class QuoteProvider(ABC):
    """
    A named backend that can price and build one kind of operation.

    Allowance support is an optional capability: subclasses that need ERC-20 approvals
    implement both ``check_allowance`` and ``build_approve_transaction`` (see
    ``AllowanceSupport``). The registry rejects providers that implement only one.
    """

    name: str
    kind: QuoteKind
    quote_ttl_seconds: Optional[int] = None

    def __init__(
        self,
        *,
        token_resolver: TokenResolver,
        amount_adjuster: AmountAdjuster,
        balance_validator: BalanceValidator,
    ):
        self.token_resolver = token_resolver
        self.amount_adjuster = amount_adjuster
        self.balance_validator = balance_validator

    @abstractmethod
    def get_supported_networks(self) -> List[Network]:
        ...

    @abstractmethod
    async def get_quote(self, params: Any, wallet_address: str) -> Quote:
        ...

    async def check_balance(self, quote: Quote, wallet_address: str) -> BalanceCheck:
        return await self.balance_validator.check(quote, wallet_address)

    async def build_transaction(self, quote: Quote, wallet_address: str) -> TransactionPayload:
        """Return the payload fixed at quote time; building twice yields the same payload."""
        return quote.tx

    def get_prompt(self) -> Optional[str]:
        """Provider specific guidance appended to the tool description."""
        return None

    async def spend_amount(
        self,
        token: Token,
        requested: str,
        wallet_address: str,
    ) -> Tuple[str, int]:
        """Apply the gas reserve to a requested spend; returns (human, base units)."""
        adjusted = await self.amount_adjuster.adjust(token.address, requested, wallet_address, token.network)
        base_units = to_base_units(adjusted, token.decimals)
        if base_units <= 0:
            raise ZeroAmountError(token.address, token.network.value, requested)
        return adjusted, base_units

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class AllowanceSupport:
    """Mixin implementing the allowance capability through an AllowanceManager."""

    allowance_manager: AllowanceManager

    async def check_allowance(self, network: Network, token: str, owner: str, spender: str) -> int:
        return await self.allowance_manager.check_allowance(network, token, owner, spender)

    async def build_approve_transaction(
        self,
        network: Network,
        token: str,
        spender: str,
        amount: int,
        owner: str,
    ) -> TransactionPayload:
        return await self.allowance_manager.build_approve(network, token, spender, amount, owner)
