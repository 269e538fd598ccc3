"""Native and ERC-20 transfers on EVM networks."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from ..allowance import AllowanceManager
from ..amounts import format_units
from ..chain_types import Network, is_evm_network, is_native_token
from ..execution.tx_builder import MAX_UINT256, build_erc20_transfer, build_native_transfer
from ..models import AmountType, Quote, QuoteKind, TransferParams
from .base import AllowanceSupport, QuoteProvider, new_quote_id


logger = logging.getLogger(__name__)


class TransferProvider(AllowanceSupport, QuoteProvider):
    """
    Builds transfers locally; no external backend is involved.

    The quote's to_amount always equals from_amount. For native transfers the amount is
    shrunk so the gas reserve stays behind, which is what makes "send everything" work.
    """

    name = "transfer"
    kind = QuoteKind.TRANSFER

    def __init__(self, *, allowance_manager: AllowanceManager, **collaborators: Any):
        super().__init__(**collaborators)
        self.allowance_manager = allowance_manager

    def get_supported_networks(self) -> List[Network]:
        return [network for network in Network if is_evm_network(network)]

    async def get_quote(self, params: TransferParams, wallet_address: str) -> Quote:
        token = await self.token_resolver.resolve(params.token, params.network)
        _, amount = await self.spend_amount(token, params.amount, wallet_address)

        if is_native_token(token.address, params.network):
            tx = build_native_transfer(params.network, params.to_address, amount)
        else:
            tx = build_erc20_transfer(params.network, token.address, params.to_address, amount)

        formatted = format_units(amount, token.decimals)
        logger.info(f"Transfer quote {formatted} {token.symbol} -> {params.to_address} on {params.network.value}")
        return Quote(
            quote_id=new_quote_id(),
            network=params.network,
            from_token=token,
            to_token=token,
            from_amount=formatted,
            to_amount=formatted,
            type=AmountType.INPUT,
            slippage_bps=0,
            price_impact=0.0,
            route=(token.symbol,),
            estimated_gas="0",
            tx=tx,
            provider=self.name,
            kind=QuoteKind.TRANSFER,
            recipient=params.to_address,
        )

    async def check_allowance(self, network: Network, token: str, owner: str, spender: str) -> int:
        # transfer() moves the caller's own tokens; the token contract is the spend target.
        if token.lower() == spender.lower():
            return MAX_UINT256
        return await super().check_allowance(network, token, owner, spender)

    def get_prompt(self) -> Optional[str]:
        return (
            "Transfers send native currency or ERC-20 tokens to another address. "
            "Sending the full native balance keeps a small reserve for gas."
        )
