"""Jupiter-backed swap adapter for Solana."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from ...providers.jupiter import JupiterClient
from ..amounts import format_units, to_base_units
from ..chain_types import WSOL_MINT, Network, get_metadata, is_native_token
from ..errors import ErrorStep, StructuredError
from ..models import AmountType, Quote, QuoteKind, SwapParams, Token, TransactionPayload
from .base import QuoteProvider, backend_error, new_quote_id


logger = logging.getLogger(__name__)

JUPITER_PROGRAM_ID = "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4"
# Base signature fee per transaction
SIGNATURE_FEE_LAMPORTS = 5000

_SWAP_MODES = {
    AmountType.INPUT: "ExactIn",
    AmountType.OUTPUT: "ExactOut",
}


def jupiter_mint(token: Token) -> str:
    """Jupiter routes native SOL through the wrapped SOL mint."""
    if is_native_token(token.address, token.network):
        return WSOL_MINT
    return token.address


class JupiterSwapProvider(QuoteProvider):
    """
    Solana swaps through the Jupiter aggregator.

    The serialized transaction is fetched at quote time, so the payload stored with the
    quote is exactly what the wallet signs. There is no allowance stage on Solana.
    """

    name = "jupiter"
    kind = QuoteKind.SWAP

    def __init__(self, client: JupiterClient, **collaborators: Any):
        super().__init__(**collaborators)
        self.client = client

    def get_supported_networks(self) -> List[Network]:
        return [Network.SOLANA]

    async def get_quote(self, params: SwapParams, wallet_address: str) -> Quote:
        network = params.network
        from_token = await self.token_resolver.resolve(params.from_token, network)
        to_token = await self.token_resolver.resolve(params.to_token, network)

        if params.type == AmountType.INPUT:
            _, amount = await self.spend_amount(from_token, params.amount, wallet_address)
        else:
            amount = to_base_units(params.amount, to_token.decimals)

        try:
            route = await self.client.quote(
                jupiter_mint(from_token),
                jupiter_mint(to_token),
                amount,
                slippage_bps=params.slippage_bps,
                swap_mode=_SWAP_MODES[params.type],
            )
            swap = await self.client.swap(route, wallet_address)
        except Exception as e:
            raise backend_error(self.name, e, network=network.value) from e

        serialized = swap.get("swapTransaction")
        if not serialized:
            raise StructuredError(
                ErrorStep.PRICE_RETRIEVAL,
                f"{self.name} returned no swap transaction.",
                {"provider": self.name, "network": network.value},
            )

        in_amount = int(route.get("inAmount") or 0)
        out_amount = int(route.get("outAmount") or 0)
        # priceImpactPct is a fraction ("0.0012" == 0.12 %)
        impact = float(route.get("priceImpactPct") or 0) * 100
        labels = tuple(
            (step.get("swapInfo") or {}).get("label", "")
            for step in route.get("routePlan") or []
        )

        fee_lamports = SIGNATURE_FEE_LAMPORTS + int(swap.get("prioritizationFeeLamports") or 0)
        native_decimals = get_metadata(network).native_decimals

        quote = Quote(
            quote_id=new_quote_id(),
            network=network,
            from_token=from_token,
            to_token=to_token,
            from_amount=format_units(in_amount, from_token.decimals),
            to_amount=format_units(out_amount, to_token.decimals),
            type=params.type,
            slippage_bps=params.slippage_bps,
            price_impact=impact,
            route=tuple(label for label in labels if label) or (self.name,),
            estimated_gas=format_units(fee_lamports, native_decimals),
            tx=TransactionPayload(
                to=JUPITER_PROGRAM_ID,
                data=serialized,
                value=0,
                network=network,
                last_valid_block_height=swap.get("lastValidBlockHeight"),
            ),
            provider=self.name,
            kind=QuoteKind.SWAP,
        )
        logger.info(
            f"Jupiter quote {from_token.symbol} -> {to_token.symbol}: "
            f"{quote.from_amount} -> {quote.to_amount} via {', '.join(quote.route)}"
        )
        return quote

    def get_prompt(self) -> Optional[str]:
        return (
            "Jupiter swaps tokens on Solana. Use So11111111111111111111111111111111111111111 "
            "for native SOL and SPL mint addresses for other tokens."
        )
