"""
Tests for unit conversion and the native gas reserve.
"""

from decimal import Decimal

import pytest

from quoteflow.core.amounts import AmountAdjuster, format_units, parse_amount, to_base_units
from quoteflow.core.chain_types import EVM_NATIVE_TOKEN_ADDRESS, SOL_NATIVE_TOKEN_ADDRESS, Network

from tests.fakes import ETH, GAS_BUFFERS, SOL_WALLET, USDC_BASE, WALLET, FakeChainReader


# ============================================================================
# Conversions
# ============================================================================


def test_to_base_units_truncates_sub_unit_fractions():
    assert to_base_units("1.2345678", 6) == 1234567
    assert to_base_units("0.000000000000000001", 18) == 1
    assert to_base_units("0.0000001", 6) == 0


def test_format_units_strips_trailing_zeros():
    assert format_units(1_500_000, 6) == "1.5"
    assert format_units(2 * ETH, 18) == "2"
    assert format_units(0, 18) == "0"
    assert format_units(1, 18) == "0.000000000000000001"


@pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity"])
def test_parse_amount_rejects_non_numbers(value):
    with pytest.raises(ValueError):
        parse_amount(value)


def test_parse_amount_accepts_plain_decimals():
    assert parse_amount(" 0.5 ") == Decimal("0.5")


# ============================================================================
# AmountAdjuster
# ============================================================================


@pytest.fixture
def reader():
    return FakeChainReader()


@pytest.fixture
def adjuster(reader):
    return AmountAdjuster(reader, GAS_BUFFERS)


@pytest.mark.asyncio
async def test_non_native_amount_is_unchanged(adjuster, reader):
    reader.set_native(Network.BASE, WALLET, 0)

    assert await adjuster.adjust(USDC_BASE, "100", WALLET, Network.BASE) == "100"


@pytest.mark.asyncio
async def test_native_amount_with_room_for_gas_is_unchanged(adjuster, reader):
    reader.set_native(Network.BASE, WALLET, 2 * ETH)

    assert await adjuster.adjust(EVM_NATIVE_TOKEN_ADDRESS, "1", WALLET, Network.BASE) == "1"


@pytest.mark.asyncio
async def test_exact_fit_including_buffer_is_unchanged(adjuster, reader):
    reader.set_native(Network.BASE, WALLET, ETH + 10**15)

    assert await adjuster.adjust(EVM_NATIVE_TOKEN_ADDRESS, "1", WALLET, Network.BASE) == "1"


@pytest.mark.asyncio
async def test_full_balance_keeps_the_gas_buffer(adjuster, reader):
    reader.set_native(Network.BASE, WALLET, ETH)

    assert await adjuster.adjust(EVM_NATIVE_TOKEN_ADDRESS, "1", WALLET, Network.BASE) == "0.999"


@pytest.mark.asyncio
async def test_one_unit_over_is_shrunk(adjuster, reader):
    reader.set_native(Network.BASE, WALLET, ETH + 10**15 - 1)

    result = await adjuster.adjust(EVM_NATIVE_TOKEN_ADDRESS, "1", WALLET, Network.BASE)

    assert to_base_units(result, 18) == ETH - 1


@pytest.mark.asyncio
async def test_buffer_larger_than_balance_yields_zero(adjuster, reader):
    reader.set_native(Network.POLYGON, WALLET, 5 * 10**16)

    assert await adjuster.adjust(EVM_NATIVE_TOKEN_ADDRESS, "1", WALLET, Network.POLYGON) == "0"


@pytest.mark.asyncio
async def test_solana_uses_lamports(adjuster, reader):
    reader.set_native(Network.SOLANA, SOL_WALLET, 1_000_000_000)

    assert await adjuster.adjust(SOL_NATIVE_TOKEN_ADDRESS, "1", SOL_WALLET, Network.SOLANA) == "0.99"


def test_gas_buffer_lookup(adjuster):
    assert adjuster.gas_buffer(Network.POLYGON) == Decimal("0.1")
    assert adjuster.gas_buffer_base_units(Network.SOLANA) == 10_000_000
