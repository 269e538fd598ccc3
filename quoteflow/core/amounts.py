"""
Amount handling: human/base unit conversion and native gas reserve adjustment.
"""

from __future__ import annotations

import logging
from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext
from typing import Mapping, Optional, Protocol, Union

from ..config import settings
from .chain_types import Network, get_metadata, is_native_token


logger = logging.getLogger(__name__)

AmountLike = Union[str, int, Decimal]


def parse_amount(amount: AmountLike) -> Decimal:
    """Parse a human amount; raises ValueError for anything that is not a finite number."""
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    return value


def to_base_units(amount: AmountLike, decimals: int) -> int:
    """Convert a human amount to integer base units, truncating sub-unit fractions."""
    with localcontext() as ctx:
        ctx.prec = 100
        scaled = parse_amount(amount).scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def format_units(base_units: int, decimals: int) -> str:
    """Render base units as a plain decimal string without trailing zeros."""
    with localcontext() as ctx:
        ctx.prec = 100
        value = Decimal(base_units).scaleb(-decimals)
    if value == 0:
        return "0"
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


class NativeBalanceReader(Protocol):
    async def get_native_balance(self, network: Network, address: str) -> int:
        ...


class AmountAdjuster:
    """
    Shrinks native-currency spends so a per-network gas buffer stays in the wallet.

    Non-native tokens are returned unchanged. Never raises for insufficiency: when the
    buffer exceeds the balance the adjusted amount is "0" and later validation fails.
    """

    def __init__(
        self,
        chain_reader: NativeBalanceReader,
        gas_buffers: Optional[Mapping[str, Decimal]] = None,
    ):
        self.chain_reader = chain_reader
        self.gas_buffers = dict(gas_buffers if gas_buffers is not None else settings.gas_buffers)

    def gas_buffer(self, network: Network) -> Decimal:
        return Decimal(str(self.gas_buffers.get(network.value, Decimal("0"))))

    def gas_buffer_base_units(self, network: Network) -> int:
        return to_base_units(self.gas_buffer(network), get_metadata(network).native_decimals)

    async def adjust(
        self,
        token_address: str,
        requested_amount: str,
        wallet_address: str,
        network: Network,
    ) -> str:
        if not is_native_token(token_address, network):
            return requested_amount

        decimals = get_metadata(network).native_decimals
        requested = to_base_units(requested_amount, decimals)
        balance = await self.chain_reader.get_native_balance(network, wallet_address)
        buffer = self.gas_buffer_base_units(network)

        if requested + buffer <= balance:
            return requested_amount

        adjusted = format_units(max(0, balance - buffer), decimals)
        logger.info(
            f"Adjusted native {network.value} amount from {requested_amount} to {adjusted} "
            f"to keep {self.gas_buffer(network)} for gas"
        )
        return adjusted
