"""
ERC-4626 vault staking adapter.

supply/stake deposit the underlying asset and mint shares; withdraw/unstake burn shares
to take out an exact amount of the asset. Quotes come from the vault's own preview
functions, so no external pricing backend is involved.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

from ..allowance import AllowanceManager
from ..amounts import format_units
from ..chain_types import Network, is_evm_network
from ..errors import ErrorStep, StructuredError
from ..execution.tx_builder import (
    ERC20_BALANCE_OF_SELECTOR,
    ERC4626_ASSET_SELECTOR,
    ERC4626_CONVERT_TO_ASSETS_SELECTOR,
    ERC4626_PREVIEW_DEPOSIT_SELECTOR,
    ERC4626_PREVIEW_WITHDRAW_SELECTOR,
    MAX_UINT256,
    build_vault_deposit,
    build_vault_withdraw,
    decode_address,
    decode_uint256,
    encode_call,
)
from ..models import AmountType, Quote, QuoteKind, StakingParams, VaultPosition
from .base import AllowanceSupport, QuoteProvider, new_quote_id


logger = logging.getLogger(__name__)


class ContractCaller(Protocol):
    async def eth_call(self, network: Network, to: str, data: str) -> str:
        ...


class VaultStakingProvider(AllowanceSupport, QuoteProvider):
    name = "erc4626"
    kind = QuoteKind.STAKING

    def __init__(
        self,
        chain_reader: ContractCaller,
        vaults: Dict[str, List[str]],
        *,
        allowance_manager: AllowanceManager,
        **collaborators: Any,
    ):
        super().__init__(**collaborators)
        self.chain_reader = chain_reader
        self.allowance_manager = allowance_manager
        self.vaults: Dict[Network, List[str]] = {}
        for name, addresses in vaults.items():
            network = Network(name)
            if is_evm_network(network) and addresses:
                self.vaults[network] = [a.lower() for a in addresses]

    def get_supported_networks(self) -> List[Network]:
        return list(self.vaults)

    def _require_vault(self, vault: str, network: Network) -> None:
        allowed = self.vaults.get(network, [])
        if vault.lower() not in allowed:
            raise StructuredError(
                ErrorStep.PROVIDER_VALIDATION,
                f"Vault {vault} is not supported on {network.value}",
                {"provider": self.name, "vault": vault, "network": network.value, "supportedVaults": allowed},
            )

    async def _call_uint(self, network: Network, vault: str, data: str) -> int:
        try:
            return decode_uint256(await self.chain_reader.eth_call(network, vault, data))
        except Exception as e:
            raise StructuredError(
                ErrorStep.DATA_RETRIEVAL,
                "Failed to read vault state.",
                {"provider": self.name, "vault": vault, "network": network.value, "error": str(e)},
            ) from e

    async def _vault_asset(self, network: Network, vault: str) -> str:
        try:
            return decode_address(await self.chain_reader.eth_call(network, vault, ERC4626_ASSET_SELECTOR))
        except Exception as e:
            raise StructuredError(
                ErrorStep.DATA_RETRIEVAL,
                "Failed to read vault asset.",
                {"provider": self.name, "vault": vault, "network": network.value, "error": str(e)},
            ) from e

    async def get_quote(self, params: StakingParams, wallet_address: str) -> Quote:
        network = params.network
        self._require_vault(params.vault, network)

        asset = await self.token_resolver.resolve(params.token, network)
        shares_token = await self.token_resolver.resolve(params.vault, network)

        vault_asset = await self._vault_asset(network, params.vault)
        if vault_asset.lower() != asset.address.lower():
            raise StructuredError(
                ErrorStep.PROVIDER_VALIDATION,
                f"Vault {params.vault} does not accept {asset.symbol}",
                {"provider": self.name, "vault": params.vault, "asset": vault_asset, "token": asset.address},
            )

        _, assets = await self.spend_amount(asset, params.amount, wallet_address)
        if params.action.is_deposit:
            shares = await self._call_uint(
                network, params.vault, encode_call(ERC4626_PREVIEW_DEPOSIT_SELECTOR, assets)
            )
            from_token, to_token = asset, shares_token
            from_amount, to_amount = format_units(assets, asset.decimals), format_units(shares, shares_token.decimals)
            tx = build_vault_deposit(network, params.vault, assets, wallet_address)
        else:
            shares = await self._call_uint(
                network, params.vault, encode_call(ERC4626_PREVIEW_WITHDRAW_SELECTOR, assets)
            )
            from_token, to_token = shares_token, asset
            from_amount, to_amount = format_units(shares, shares_token.decimals), format_units(assets, asset.decimals)
            tx = build_vault_withdraw(network, params.vault, assets, wallet_address, wallet_address)

        logger.info(
            f"Vault {params.action.value} quote on {network.value}: {from_amount} {from_token.symbol} "
            f"-> {to_amount} {to_token.symbol}"
        )
        return Quote(
            quote_id=new_quote_id(),
            network=network,
            from_token=from_token,
            to_token=to_token,
            from_amount=from_amount,
            to_amount=to_amount,
            type=AmountType.INPUT,
            slippage_bps=0,
            price_impact=0.0,
            route=(params.vault,),
            estimated_gas="0",
            tx=tx,
            provider=self.name,
            kind=QuoteKind.STAKING,
            action=params.action,
        )

    async def get_positions(self, network: Network, owner: str) -> List[VaultPosition]:
        """Non-zero share balances of ``owner`` in the configured vaults, with their redeem value."""
        positions: List[VaultPosition] = []
        for vault in self.vaults.get(network, []):
            shares = await self._call_uint(network, vault, encode_call(ERC20_BALANCE_OF_SELECTOR, owner))
            if shares == 0:
                continue
            assets = await self._call_uint(network, vault, encode_call(ERC4626_CONVERT_TO_ASSETS_SELECTOR, shares))
            asset = await self.token_resolver.resolve(await self._vault_asset(network, vault), network)
            shares_token = await self.token_resolver.resolve(vault, network)
            positions.append(VaultPosition(vault=shares_token, asset=asset, shares=shares, assets=assets))

        logger.info(f"Found {len(positions)} vault positions for {owner} on {network.value}")
        return positions

    async def check_allowance(self, network: Network, token: str, owner: str, spender: str) -> int:
        # Owners redeem their own shares without approving the vault.
        if token.lower() == spender.lower():
            return MAX_UINT256
        return await super().check_allowance(network, token, owner, spender)

    def get_prompt(self) -> Optional[str]:
        lines = ["ERC-4626 vaults accept the vault's underlying asset. Supported vaults:"]
        for network, addresses in self.vaults.items():
            lines.append(f"- {network.value}: {', '.join(addresses)}")
        return "\n".join(lines)
