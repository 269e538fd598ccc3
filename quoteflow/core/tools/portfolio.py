"""
Read-only tools reporting what a wallet holds.

Neither tool quotes or signs anything. A read that fails for one network, token or
provider is reported next to the reads that succeeded; the tools only answer with an
error envelope when nothing at all could be read.
"""

from __future__ import annotations

import inspect
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Type, Union

import structlog
from pydantic import BaseModel

from ...logging_config import log_structured_error
from ...types.envelope import (
    BalanceEnvelope,
    ErrorEnvelope,
    NetworkBalances,
    PositionsEnvelope,
    TokenBalanceInfo,
    VaultPositionInfo,
)
from ...types.requests import StakingPositionsRequest, WalletBalanceRequest
from ..chain_types import Network, is_native_token, is_solana_network, is_valid_address, native_token_address
from ..errors import ErrorStep, StructuredError, classify_error
from ..execution.wallet import Wallet
from ..models import TokenBalance, ToolProgress, VaultPosition
from ..registry import ProviderRegistry
from ..suggestions import ToolType, generate_suggestion
from ..tokens import TokenResolver
from .base import ProgressCallback, check_network, coerce_request, describe_failure, resolve_wallet_address


logger = logging.getLogger(__name__)


class BalanceReader(Protocol):
    async def get_native_balance(self, network: Network, address: str) -> int:
        ...

    async def get_token_balance(self, network: Network, token: str, owner: str) -> int:
        ...


class PositionProvider(Protocol):
    name: str

    def get_supported_networks(self) -> List[Network]:
        ...

    async def get_positions(self, network: Network, owner: str) -> List[VaultPosition]:
        ...


class ReadTool:
    """Shared request handling for tools that only read chain state."""

    tool_type: ToolType
    request_model: Type[BaseModel]
    description: str = ""

    def __init__(self, wallet: Wallet):
        self.wallet = wallet

    def supported_networks(self) -> List[Network]:
        raise NotImplementedError

    def get_description(self) -> str:
        networks = ", ".join(n.value for n in self.supported_networks()) or "none"
        return f"{self.description}\n\nSupported networks: {networks}"

    def get_parameters_schema(self) -> Dict[str, Any]:
        schema = self.request_model.model_json_schema(by_alias=False)
        prop = schema.get("properties", {}).get("network")
        if prop is not None:
            prop["enum"] = [n.value for n in self.supported_networks()]
        return schema

    @staticmethod
    async def _progress(on_progress: Optional[ProgressCallback], progress: int, message: str, **data: Any) -> None:
        if on_progress is None:
            return
        result = on_progress(ToolProgress(progress=progress, message=message, data=data))
        if inspect.isawaitable(result):
            await result

    def error_envelope(self, error: Any, params: Optional[Mapping[str, Any]] = None) -> ErrorEnvelope:
        structured = classify_error(error, {"tool": self.tool_type.value})
        log_structured_error(logger, f"{self.tool_type.value} tool", structured)
        return ErrorEnvelope(
            error_step=structured.step,
            message=structured.message,
            details=structured.details,
            suggestion=generate_suggestion(structured, self.tool_type, params),
        )

    async def read(self, request: BaseModel, on_progress: Optional[ProgressCallback]) -> BaseModel:
        raise NotImplementedError

    async def run(
        self,
        request: Union[BaseModel, Mapping[str, Any]],
        on_progress: Optional[ProgressCallback] = None,
    ) -> Union[BaseModel, ErrorEnvelope]:
        params_view: Dict[str, Any] = dict(request) if isinstance(request, Mapping) else request.model_dump()
        with structlog.contextvars.bound_contextvars(tool=self.tool_type.value):
            try:
                return await self.read(coerce_request(self.request_model, request), on_progress)
            except Exception as e:
                return self.error_envelope(e, params_view)


class WalletBalanceTool(ReadTool):
    """Native and watched token balances of a wallet, per network."""

    tool_type = ToolType.WALLET_BALANCE
    request_model = WalletBalanceRequest
    description = (
        "Get the native currency and token balances of a wallet, including token addresses, "
        "symbols and decimals. Without a network, every configured network is reported."
    )

    def __init__(
        self,
        wallet: Wallet,
        chain_reader: BalanceReader,
        token_resolver: TokenResolver,
        networks: Iterable[Network],
        watched_tokens: Optional[Mapping[str, List[str]]] = None,
        dust_threshold: Decimal = Decimal("0.00001"),
    ):
        super().__init__(wallet)
        self.chain_reader = chain_reader
        self.token_resolver = token_resolver
        self.networks = list(dict.fromkeys(networks))
        self.watched_tokens = dict(watched_tokens or {})
        self.dust_threshold = dust_threshold

    def supported_networks(self) -> List[Network]:
        return list(self.networks)

    def _token_list(self, network: Network, extra: List[str]) -> List[str]:
        seen: Dict[str, str] = {}
        for address in [native_token_address(network), *self.watched_tokens.get(network.value, []), *extra]:
            address = address.strip()
            if is_native_token(address, network):
                address = native_token_address(network)
            key = address if is_solana_network(network) else address.lower()
            seen.setdefault(key, address)
        return list(seen.values())

    async def _read_balance(self, network: Network, address: str, owner: str) -> TokenBalance:
        token = await self.token_resolver.resolve(address, network)
        if is_native_token(token.address, network):
            amount = await self.chain_reader.get_native_balance(network, owner)
        else:
            amount = await self.chain_reader.get_token_balance(network, token.address, owner)
        return TokenBalance(token=token, amount=amount)

    def _is_dust(self, balance: TokenBalance) -> bool:
        if is_native_token(balance.token.address, balance.token.network):
            return False
        return Decimal(balance.amount).scaleb(-balance.token.decimals) <= self.dust_threshold

    async def network_balances(self, network: Network, owner: str, extra: List[str]) -> NetworkBalances:
        """Balances of ``owner`` on one network. Raises DATA_RETRIEVAL when no token could be read."""
        tokens: List[TokenBalanceInfo] = []
        errors: Dict[str, str] = {}
        for address in self._token_list(network, extra):
            try:
                balance = await self._read_balance(network, address, owner)
            except Exception as e:
                errors[address] = describe_failure(e)
                logger.warning(f"Balance read failed for {address} on {network.value}: {errors[address]}")
                continue
            if not self._is_dust(balance):
                tokens.append(TokenBalanceInfo.from_balance(balance))

        if not tokens and errors:
            raise StructuredError(
                ErrorStep.DATA_RETRIEVAL,
                f"Failed to read balances on {network.value}.",
                {"network": network.value, "address": owner, "errors": errors},
            )
        return NetworkBalances(address=owner, tokens=tokens, errors=errors or None)

    async def read(self, request: WalletBalanceRequest, on_progress: Optional[ProgressCallback]) -> BalanceEnvelope:
        if request.network:
            networks = [check_network(request.network, self.supported_networks(), self.tool_type)]
        else:
            networks = self.supported_networks()

        if request.address:
            networks = [n for n in networks if is_valid_address(request.address, n)]
            if not networks:
                raise StructuredError(
                    ErrorStep.TOOL_EXECUTION,
                    f"Address {request.address} is not valid on the requested networks.",
                    {"address": request.address, "network": request.network},
                )

        results: Dict[str, NetworkBalances] = {}
        failures: Dict[str, str] = {}
        for index, network in enumerate(networks):
            await self._progress(
                on_progress, 100 * index // len(networks), f"Reading balances on {network.value}"
            )
            try:
                owner = request.address or await resolve_wallet_address(self.wallet, network)
                results[network.value] = await self.network_balances(network, owner, request.tokens)
            except Exception as e:
                failures[network.value] = describe_failure(e)
                logger.warning(f"Skipping {network.value} in balance report: {failures[network.value]}")

        if not results:
            raise StructuredError(
                ErrorStep.DATA_RETRIEVAL,
                "Failed to get wallet balances for any network.",
                {"address": request.address, "errors": failures},
            )

        await self._progress(on_progress, 100, "Balances retrieved", networks=list(results))
        return BalanceEnvelope(results=results, errors=failures or None)


class StakingPositionsTool(ReadTool):
    """Vault positions of a wallet on one network, across every registered position provider."""

    tool_type = ToolType.STAKING_POSITIONS
    request_model = StakingPositionsRequest
    description = (
        "Get the staking positions of a wallet: vault shares held and the underlying assets "
        "they currently redeem for."
    )

    def __init__(self, wallet: Wallet):
        super().__init__(wallet)
        self.registry = ProviderRegistry()

    def register_provider(self, provider: PositionProvider) -> None:
        if not callable(getattr(provider, "get_positions", None)):
            raise StructuredError(
                ErrorStep.INITIALIZATION,
                f"Provider {provider.name} cannot report positions",
                {"provider": provider.name, "tool": self.tool_type.value},
            )
        self.registry.register(provider)

    def supported_networks(self) -> List[Network]:
        return self.registry.supported_networks()

    def get_description(self) -> str:
        providers = ", ".join(self.registry.list_names()) or "none"
        return f"{super().get_description()}\nProviders: {providers}"

    async def read(
        self, request: StakingPositionsRequest, on_progress: Optional[ProgressCallback]
    ) -> PositionsEnvelope:
        network = check_network(request.network, self.supported_networks(), self.tool_type)
        if request.address:
            if not is_valid_address(request.address, network):
                raise StructuredError(
                    ErrorStep.TOOL_EXECUTION,
                    f"Address {request.address} is not valid on {network.value}.",
                    {"address": request.address, "network": network.value},
                )
            owner = request.address
        else:
            owner = await resolve_wallet_address(self.wallet, network)

        await self._progress(on_progress, 20, f"Retrieving staking positions for {owner}")

        positions: List[VaultPositionInfo] = []
        errors: Dict[str, str] = {}
        for provider in self.registry.get_by_network(network):
            try:
                found = await provider.get_positions(network, owner)
            except Exception as e:
                errors[provider.name] = describe_failure(e)
                logger.warning(f"Provider {provider.name} failed to report positions: {errors[provider.name]}")
                continue
            positions.extend(VaultPositionInfo.from_position(provider.name, p) for p in found)

        if not positions and errors:
            raise StructuredError(
                ErrorStep.DATA_RETRIEVAL,
                f"Failed to read staking positions for {owner}.",
                {"network": network.value, "address": owner, "errors": errors},
            )

        await self._progress(on_progress, 100, f"Found {len(positions)} staking positions")
        return PositionsEnvelope(network=network.value, address=owner, positions=positions, errors=errors or None)
