"""
Calldata encoding and transaction builders for the EVM contracts the tools touch.
"""

from __future__ import annotations

from ..chain_types import Network
from ..models import TransactionPayload


# Minimal ABI selectors
ERC20_APPROVE_SELECTOR = "0x095ea7b3"  # approve(address,uint256)
ERC20_TRANSFER_SELECTOR = "0xa9059cbb"  # transfer(address,uint256)
ERC20_BALANCE_OF_SELECTOR = "0x70a08231"  # balanceOf(address)
ERC20_ALLOWANCE_SELECTOR = "0xdd62ed3e"  # allowance(address,address)
ERC20_DECIMALS_SELECTOR = "0x313ce567"  # decimals()
ERC20_SYMBOL_SELECTOR = "0x95d89b41"  # symbol()

ERC4626_ASSET_SELECTOR = "0x38d52e0f"  # asset()
ERC4626_DEPOSIT_SELECTOR = "0x6e553f65"  # deposit(uint256,address)
ERC4626_WITHDRAW_SELECTOR = "0xb460af94"  # withdraw(uint256,address,address)
ERC4626_PREVIEW_DEPOSIT_SELECTOR = "0xef8b30f7"  # previewDeposit(uint256)
ERC4626_PREVIEW_WITHDRAW_SELECTOR = "0x0a28a477"  # previewWithdraw(uint256)
ERC4626_CONVERT_TO_ASSETS_SELECTOR = "0x07a2d13a"  # convertToAssets(uint256)

# Maximum uint256 for unlimited approval
MAX_UINT256 = 2**256 - 1


def _encode_uint256(value: int) -> str:
    """Encode a uint256 as a 32-byte hex string (without 0x prefix)."""
    if value < 0 or value > MAX_UINT256:
        raise ValueError(f"Value out of uint256 range: {value}")
    return format(value, "064x")


def _encode_address(address: str) -> str:
    """Encode an address as a 32-byte hex string (without 0x prefix)."""
    addr = address.lower()
    if addr.startswith("0x"):
        addr = addr[2:]
    return addr.zfill(64)


def encode_call(selector: str, *args: str | int) -> str:
    """ABI-encode a call whose arguments are all static (address or uint256)."""
    encoded = selector
    for arg in args:
        if isinstance(arg, int):
            encoded += _encode_uint256(arg)
        else:
            encoded += _encode_address(arg)
    return encoded


def decode_uint256(result: str | None) -> int:
    """Decode the first word of an eth_call result; empty results decode to 0."""
    if not result or result == "0x":
        return 0
    body = result[2:] if result.startswith("0x") else result
    return int(body[:64], 16)


def decode_address(result: str | None) -> str:
    value = decode_uint256(result)
    return "0x" + format(value, "040x")


def decode_string(result: str | None) -> str:
    """
    Decode an ABI string return value.

    Some older tokens return bytes32 instead of a dynamic string; both are handled.
    """
    if not result or result == "0x":
        return ""
    body = result[2:] if result.startswith("0x") else result
    raw = bytes.fromhex(body)
    if len(raw) == 32:
        return raw.rstrip(b"\x00").decode("utf-8", errors="ignore")
    offset = int.from_bytes(raw[:32], "big")
    length = int.from_bytes(raw[offset:offset + 32], "big")
    start = offset + 32
    return raw[start:start + length].decode("utf-8", errors="ignore")


def build_erc20_approve(
    network: Network,
    token_address: str,
    spender_address: str,
    amount: int,
) -> TransactionPayload:
    """Build an ERC-20 approve(spender, amount) call on the token contract."""
    return TransactionPayload(
        to=token_address,
        data=encode_call(ERC20_APPROVE_SELECTOR, spender_address, amount),
        value=0,
        network=network,
    )


def build_erc20_transfer(
    network: Network,
    token_address: str,
    to_address: str,
    amount: int,
) -> TransactionPayload:
    return TransactionPayload(
        to=token_address,
        data=encode_call(ERC20_TRANSFER_SELECTOR, to_address, amount),
        value=0,
        network=network,
    )


def build_native_transfer(network: Network, to_address: str, amount_wei: int) -> TransactionPayload:
    """Build a native token (ETH, POL, BNB) transfer."""
    return TransactionPayload(to=to_address, data="0x", value=amount_wei, network=network)


def build_vault_deposit(
    network: Network,
    vault_address: str,
    assets: int,
    receiver: str,
) -> TransactionPayload:
    return TransactionPayload(
        to=vault_address,
        data=encode_call(ERC4626_DEPOSIT_SELECTOR, assets, receiver),
        value=0,
        network=network,
    )


def build_vault_withdraw(
    network: Network,
    vault_address: str,
    assets: int,
    receiver: str,
    owner: str,
) -> TransactionPayload:
    return TransactionPayload(
        to=vault_address,
        data=encode_call(ERC4626_WITHDRAW_SELECTOR, assets, receiver, owner),
        value=0,
        network=network,
    )


def parse_quantity(value: str | int | None) -> int:
    """Parse a hex (0x...) or decimal quantity as returned by backends."""
    if value is None or value == "":
        return 0
    if isinstance(value, int):
        return value
    if value.startswith("0x"):
        return int(value, 16)
    return int(value)
