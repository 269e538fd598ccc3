"""Pre-execution balance validation."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Mapping, Optional, Protocol

from ..config import settings
from .amounts import format_units, to_base_units
from .chain_types import Network, get_metadata, is_native_token
from .models import BalanceCheck, Quote


logger = logging.getLogger(__name__)

BALANCE_READ_FAILED = "Failed to check balance. Please try again."


class BalanceReader(Protocol):
    async def get_native_balance(self, network: Network, address: str) -> int:
        ...

    async def get_token_balance(self, network: Network, token: str, owner: str) -> int:
        ...


class BalanceValidator:
    """
    Checks the caller can afford a quote, comparing base units exactly.

    Never raises: read failures are reported as an invalid verdict.
    """

    def __init__(
        self,
        chain_reader: BalanceReader,
        gas_buffers: Optional[Mapping[str, Decimal]] = None,
    ):
        self.chain_reader = chain_reader
        self.gas_buffers = dict(gas_buffers if gas_buffers is not None else settings.gas_buffers)

    def _buffer(self, network: Network) -> int:
        buffer = Decimal(str(self.gas_buffers.get(network.value, Decimal("0"))))
        return to_base_units(buffer, get_metadata(network).native_decimals)

    async def check(self, quote: Quote, wallet_address: str) -> BalanceCheck:
        try:
            return await self._check(quote, wallet_address)
        except Exception as e:
            logger.warning(f"Balance check failed for {wallet_address} on {quote.network.value}: {e}")
            return BalanceCheck(
                is_valid=False,
                message=BALANCE_READ_FAILED,
                details={"reason": "balance_read_failed", "error": str(e) or type(e).__name__},
            )

    async def _check(self, quote: Quote, wallet_address: str) -> BalanceCheck:
        network = quote.network
        token = quote.from_token
        native = get_metadata(network)
        amount = to_base_units(quote.from_amount, token.decimals)
        buffer = self._buffer(network)

        if amount <= 0:
            return BalanceCheck(
                is_valid=False,
                message=f"Amount to spend is zero. Not enough {token.symbol} left after reserving gas.",
            )

        if is_native_token(token.address, network):
            balance = await self.chain_reader.get_native_balance(network, wallet_address)
            required = amount + buffer
            if balance < required:
                return BalanceCheck(
                    is_valid=False,
                    message=(
                        f"Insufficient {token.symbol} balance. "
                        f"Required: {format_units(required, token.decimals)} {token.symbol} "
                        f"(including {format_units(buffer, native.native_decimals)} for gas), "
                        f"Available: {format_units(balance, token.decimals)} {token.symbol}"
                    ),
                )
            return BalanceCheck(is_valid=True)

        balance = await self.chain_reader.get_token_balance(network, token.address, wallet_address)
        if balance < amount:
            return BalanceCheck(
                is_valid=False,
                message=(
                    f"Insufficient {token.symbol} balance. "
                    f"Required: {format_units(amount, token.decimals)} {token.symbol}, "
                    f"Available: {format_units(balance, token.decimals)} {token.symbol}"
                ),
            )

        native_balance = await self.chain_reader.get_native_balance(network, wallet_address)
        if native_balance < buffer:
            return BalanceCheck(
                is_valid=False,
                message=(
                    f"Insufficient {native.native_symbol} for gas. "
                    f"Required: {format_units(buffer, native.native_decimals)} {native.native_symbol}, "
                    f"Available: {format_units(native_balance, native.native_decimals)} {native.native_symbol}"
                ),
            )

        return BalanceCheck(is_valid=True)
