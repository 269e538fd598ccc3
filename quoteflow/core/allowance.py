"""
ERC-20 allowance handling.

The approval stage exists only on account-model chains. When the current allowance is
below the spend, an approval is submitted and confirmed before the spend is sent;
approval and spend are never batched.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

from .amounts import to_base_units
from .chain_types import Network, is_native_token, is_solana_network
from .errors import ErrorStep, StructuredError
from .execution.executor import TransactionExecutor
from .execution.tx_builder import MAX_UINT256, build_erc20_approve
from .execution.wallet import FinalReceipt
from .models import Quote, TransactionPayload


logger = logging.getLogger(__name__)


@runtime_checkable
class AllowanceCapable(Protocol):
    """Optional provider capability group; both methods or neither."""

    async def check_allowance(self, network: Network, token: str, owner: str, spender: str) -> int:
        ...

    async def build_approve_transaction(
        self,
        network: Network,
        token: str,
        spender: str,
        amount: int,
        owner: str,
    ) -> TransactionPayload:
        ...


class AllowanceReader(Protocol):
    async def get_allowance(self, network: Network, token: str, owner: str, spender: str) -> int:
        ...


class AllowanceManager:
    def __init__(self, chain_reader: AllowanceReader):
        self.chain_reader = chain_reader

    async def check_allowance(self, network: Network, token: str, owner: str, spender: str) -> int:
        if is_solana_network(network):
            raise StructuredError(
                ErrorStep.EXECUTION,
                "Allowances are not used on this network.",
                {"network": network.value},
            )
        if is_native_token(token, network):
            return MAX_UINT256
        return await self.chain_reader.get_allowance(network, token, owner, spender)

    async def build_approve(
        self,
        network: Network,
        token: str,
        spender: str,
        amount: int,
        owner: str,
    ) -> TransactionPayload:
        """Approve exactly ``amount``; ``owner`` is the signer and is not encoded."""
        return build_erc20_approve(network, token, spender, amount)

    async def ensure_allowance(
        self,
        provider: object,
        quote: Quote,
        spend_tx: TransactionPayload,
        owner: str,
        executor: TransactionExecutor,
    ) -> Optional[FinalReceipt]:
        """
        Approve the spend transaction's target when the current allowance is short.

        Returns the confirmed approval receipt, or None when no approval was needed
        (ledger-model network, native token, provider without the capability, or
        sufficient allowance).
        """
        network = quote.network
        token = quote.from_token

        if is_solana_network(network) or is_native_token(token.address, network):
            return None
        if not isinstance(provider, AllowanceCapable):
            return None

        required = to_base_units(quote.from_amount, token.decimals)
        spender = spend_tx.to

        try:
            allowance = await provider.check_allowance(network, token.address, owner, spender)
        except StructuredError:
            raise
        except Exception as e:
            raise StructuredError(
                ErrorStep.DATA_RETRIEVAL,
                "Failed to read token allowance.",
                {"error": str(e), "token": token.address, "spender": spender, "network": network.value},
            ) from e

        if allowance >= required:
            return None

        logger.info(
            f"Approval needed: {token.symbol} allowance {allowance} < {required} for spender {spender}"
        )
        approve_tx = await provider.build_approve_transaction(network, token.address, spender, required, owner)
        return await executor.execute_and_wait(network, approve_tx)
