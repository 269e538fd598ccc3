"""
Relay-backed swap and bridge adapters.

Relay answers ``POST /quote`` with a list of steps. Approval steps are skipped (the
allowance stage handles approvals itself); the spend transaction is the first item of the
first non-approval step, and its ``to`` is the spender the allowance stage checks.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from ...providers.relay import RelayClient
from ..allowance import AllowanceManager
from ..amounts import format_units, to_base_units
from ..chain_types import ZERO_ADDRESS, Network, get_metadata, is_evm_network, is_native_token
from ..errors import ErrorStep, StructuredError
from ..execution.tx_builder import parse_quantity
from ..models import AmountType, BridgeParams, Quote, QuoteKind, SwapParams, Token, TransactionPayload
from .base import AllowanceSupport, QuoteProvider, backend_error, new_quote_id


logger = logging.getLogger(__name__)

RELAY_NETWORKS: List[Network] = [
    Network.ETHEREUM,
    Network.BASE,
    Network.ARBITRUM,
    Network.OPTIMISM,
    Network.POLYGON,
    Network.BNB,
]

_TRADE_TYPES = {
    AmountType.INPUT: "EXACT_INPUT",
    AmountType.OUTPUT: "EXPECTED_OUTPUT",
}


def relay_currency(token: Token) -> str:
    """Relay addresses native currency with the zero address."""
    if is_native_token(token.address, token.network):
        return ZERO_ADDRESS
    return token.address


def first_spend_tx(quote: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for step in quote.get("steps") or []:
        if not isinstance(step, dict) or step.get("id") == "approve":
            continue
        for item in step.get("items") or []:
            data = item.get("data") if isinstance(item, dict) else None
            if isinstance(data, dict) and data.get("to"):
                return data
    return None


def _base_amount(currency: Dict[str, Any], default: int) -> int:
    raw = currency.get("amount")
    if raw in (None, ""):
        return default
    return int(raw)


class RelayQuoteProvider(AllowanceSupport, QuoteProvider):
    """Shared Relay quoting; subclasses decide the origin and destination."""

    def __init__(self, client: RelayClient, *, allowance_manager: AllowanceManager, **collaborators: Any):
        super().__init__(**collaborators)
        self.client = client
        self.allowance_manager = allowance_manager

    def get_supported_networks(self) -> List[Network]:
        return list(RELAY_NETWORKS)

    async def _relay_quote(
        self,
        *,
        from_token: Token,
        to_token: Token,
        amount_type: AmountType,
        requested: str,
        slippage_bps: int,
        wallet_address: str,
        recipient: Optional[str],
    ) -> Tuple[Dict[str, Any], int]:
        """Returns the response with the base-unit amount actually requested."""
        if amount_type == AmountType.INPUT:
            _, amount = await self.spend_amount(from_token, requested, wallet_address)
        else:
            amount = to_base_units(requested, to_token.decimals)

        payload: Dict[str, Any] = {
            "user": wallet_address,
            "recipient": recipient or wallet_address,
            "originChainId": get_metadata(from_token.network).chain_id,
            "destinationChainId": get_metadata(to_token.network).chain_id,
            "originCurrency": relay_currency(from_token),
            "destinationCurrency": relay_currency(to_token),
            "amount": str(amount),
            "tradeType": _TRADE_TYPES[amount_type],
            "slippageTolerance": str(slippage_bps),
        }

        try:
            response = await self.client.quote(payload)
        except Exception as e:
            raise backend_error(self.name, e, network=from_token.network.value) from e

        if not isinstance(response, dict) or first_spend_tx(response) is None:
            raise StructuredError(
                ErrorStep.PRICE_RETRIEVAL,
                f"{self.name} returned no executable transaction.",
                {"provider": self.name, "network": from_token.network.value},
            )
        return response, amount

    def _to_quote(
        self,
        response: Dict[str, Any],
        *,
        from_token: Token,
        to_token: Token,
        amount_type: AmountType,
        sent_amount: int,
        slippage_bps: int,
        recipient: Optional[str],
    ) -> Quote:
        details = response.get("details") or {}
        currency_in = details.get("currencyIn") or {}
        currency_out = details.get("currencyOut") or {}

        requested_in = sent_amount if amount_type == AmountType.INPUT else 0
        requested_out = sent_amount if amount_type == AmountType.OUTPUT else 0
        amount_in = _base_amount(currency_in, requested_in)
        amount_out = _base_amount(currency_out, requested_out)

        impact = (details.get("totalImpact") or {}).get("percent") or 0
        gas_fee = ((response.get("fees") or {}).get("gas") or {}).get("amountFormatted") or "0"

        tx_data = first_spend_tx(response) or {}
        tx = TransactionPayload(
            to=tx_data["to"],
            data=tx_data.get("data") or "0x",
            value=parse_quantity(tx_data.get("value")),
            network=from_token.network,
            gas_limit=parse_quantity(tx_data["gas"]) if tx_data.get("gas") else None,
        )

        is_bridge = from_token.network != to_token.network
        return Quote(
            quote_id=new_quote_id(),
            network=from_token.network,
            from_token=from_token,
            to_token=to_token,
            from_amount=format_units(amount_in, from_token.decimals),
            to_amount=format_units(amount_out, to_token.decimals),
            type=amount_type,
            slippage_bps=slippage_bps,
            price_impact=float(impact),
            route=(self.name, response.get("requestId") or ""),
            estimated_gas=str(gas_fee),
            tx=tx,
            provider=self.name,
            kind=QuoteKind.BRIDGE if is_bridge else QuoteKind.SWAP,
            to_network=to_token.network if is_bridge else None,
            recipient=recipient,
        )


class RelaySwapProvider(RelayQuoteProvider):
    """Same-chain swaps on EVM networks via Relay."""

    name = "relay"
    kind = QuoteKind.SWAP

    async def get_quote(self, params: SwapParams, wallet_address: str) -> Quote:
        from_token = await self.token_resolver.resolve(params.from_token, params.network)
        to_token = await self.token_resolver.resolve(params.to_token, params.network)

        response, sent_amount = await self._relay_quote(
            from_token=from_token,
            to_token=to_token,
            amount_type=params.type,
            requested=params.amount,
            slippage_bps=params.slippage_bps,
            wallet_address=wallet_address,
            recipient=None,
        )
        quote = self._to_quote(
            response,
            from_token=from_token,
            to_token=to_token,
            amount_type=params.type,
            sent_amount=sent_amount,
            slippage_bps=params.slippage_bps,
            recipient=None,
        )
        logger.info(
            f"Relay swap quote {from_token.symbol} -> {to_token.symbol} on {params.network.value}: "
            f"{quote.from_amount} -> {quote.to_amount}"
        )
        return quote

    def get_prompt(self) -> Optional[str]:
        return (
            "Relay swaps tokens on the same EVM network. Use the native token sentinel "
            "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee for ETH, POL or BNB."
        )


class RelayBridgeProvider(RelayQuoteProvider):
    """Cross-chain bridges between EVM networks via Relay."""

    name = "relay-bridge"
    kind = QuoteKind.BRIDGE

    async def get_quote(self, params: BridgeParams, wallet_address: str) -> Quote:
        if not is_evm_network(params.to_network):
            raise StructuredError(
                ErrorStep.PROVIDER_VALIDATION,
                f"{self.name} does not bridge to {params.to_network.value}",
                {"provider": self.name, "network": params.to_network.value},
            )

        from_token = await self.token_resolver.resolve(params.from_token, params.from_network)
        to_token = await self.token_resolver.resolve(params.to_token, params.to_network)

        response, sent_amount = await self._relay_quote(
            from_token=from_token,
            to_token=to_token,
            amount_type=params.type,
            requested=params.amount,
            slippage_bps=params.slippage_bps,
            wallet_address=wallet_address,
            recipient=params.recipient,
        )
        quote = self._to_quote(
            response,
            from_token=from_token,
            to_token=to_token,
            amount_type=params.type,
            sent_amount=sent_amount,
            slippage_bps=params.slippage_bps,
            recipient=params.recipient or wallet_address,
        )
        logger.info(
            f"Relay bridge quote {from_token.symbol} {params.from_network.value} -> "
            f"{to_token.symbol} {params.to_network.value}: {quote.from_amount} -> {quote.to_amount}"
        )
        return quote

    def get_prompt(self) -> Optional[str]:
        return "Relay bridges between EVM networks; the destination token must exist on the destination network."
