"""
Shared quote -> validate -> approve -> execute pipeline for every tool.

Stages run strictly in order for one operation:

    0   start; request validated, wallet address resolved
    10  provider selection
    20  quote stored
    40  quote re-read from the store and balance checked
    60  spend transaction built, allowance ensured
    80  spend submitted
    100 spend confirmed

Each stage either succeeds or raises a StructuredError tagged with its step. ``run`` and
``execute_quote`` never raise: every outcome is a SuccessEnvelope or an ErrorEnvelope.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Type, Union

import structlog
from pydantic import BaseModel, ValidationError

from ...config import settings
from ...logging_config import log_structured_error
from ..adapters.base import QuoteProvider
from ..allowance import AllowanceManager
from ..amounts import parse_amount, to_base_units
from ..chain_types import Network, is_native_token, is_valid_address, lookup_network
from ..errors import (
    ErrorStep,
    InsufficientBalanceError,
    StructuredError,
    ZeroAmountError,
    classify_error,
)
from ..execution.executor import TransactionExecutor
from ..execution.wallet import FinalReceipt, Wallet
from ..models import AmountType, Quote, QuoteKind, ToolProgress
from ..quote_store import QuoteStore
from ..registry import ProviderRegistry
from ..suggestions import ToolType, generate_suggestion
from ...types.envelope import ErrorEnvelope, SuccessEnvelope, TokenInfo, ToolResult


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ToolProgress], Union[None, Awaitable[None]]]

# Failures that are the caller's, not the backend's; another provider would fail the same way.
_NO_FAILOVER = frozenset({
    ErrorStep.NETWORK_VALIDATION,
    ErrorStep.WALLET_ACCESS,
    ErrorStep.TOKEN_NOT_FOUND,
    ErrorStep.TOOL_EXECUTION,
    ErrorStep.EXECUTION,
})


def _attempt(provider: QuoteProvider, error: Exception) -> Dict[str, Any]:
    return {
        "provider": provider.name,
        "step": classify_error(error).step.value,
        "error": describe_failure(error),
    }


def describe_failure(error: Exception) -> str:
    """Short text for one failed quote or read attempt."""
    structured = classify_error(error)
    return structured.details.get("error") or structured.message


def coerce_request(request_model: Type[BaseModel], request: Union[BaseModel, Mapping[str, Any]]) -> BaseModel:
    if isinstance(request, request_model):
        return request
    try:
        if isinstance(request, BaseModel):
            return request_model.model_validate(request.model_dump())
        return request_model.model_validate(dict(request))
    except ValidationError as e:
        raise StructuredError(
            ErrorStep.TOOL_EXECUTION,
            "Invalid request parameters.",
            {
                "errors": [
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ]
            },
        ) from e


def check_network(value: Optional[str], supported: List[Network], tool_type: ToolType) -> Network:
    network = lookup_network(value)
    if network is None or network not in supported:
        raise StructuredError(
            ErrorStep.NETWORK_VALIDATION,
            f'Network "{value}" is not supported for {tool_type.value}',
            {"requestedNetwork": value, "supportedNetworks": [n.value for n in supported]},
        )
    return network


async def resolve_wallet_address(wallet: Wallet, network: Network) -> str:
    try:
        address = await wallet.get_address(network)
    except StructuredError:
        raise
    except Exception as e:
        raise StructuredError(
            ErrorStep.WALLET_ACCESS,
            f"Failed to get wallet address for {network.value}",
            {"network": network.value, "error": str(e)},
        ) from e

    if not address or not is_valid_address(address, network):
        raise StructuredError(
            ErrorStep.WALLET_ACCESS,
            f"Wallet returned no valid address for {network.value}",
            {"network": network.value, "address": address},
        )
    return address


class QuoteTool(ABC):
    """Base class for tools that move value through a registered provider."""

    tool_type: ToolType
    kind: QuoteKind
    request_model: Type[BaseModel]
    description: str = ""
    network_fields: Tuple[str, ...] = ("network",)

    def __init__(
        self,
        wallet: Wallet,
        quote_store: QuoteStore,
        allowance_manager: AllowanceManager,
        executor: Optional[TransactionExecutor] = None,
    ):
        self.wallet = wallet
        self.quote_store = quote_store
        self.allowance_manager = allowance_manager
        self.executor = executor or TransactionExecutor(wallet)
        self.registry = ProviderRegistry()

    # ------------------------------------------------------------------
    # Registration and description
    # ------------------------------------------------------------------

    def register_provider(self, provider: QuoteProvider) -> None:
        if provider.kind != self.kind:
            raise StructuredError(
                ErrorStep.INITIALIZATION,
                f"Provider {provider.name} handles {provider.kind.value}, not {self.kind.value}",
                {"provider": provider.name, "tool": self.tool_type.value},
            )
        self.registry.register(provider)

    def supported_networks(self) -> List[Network]:
        return self.registry.supported_networks()

    def get_description(self) -> str:
        networks = ", ".join(n.value for n in self.supported_networks()) or "none"
        providers = ", ".join(self.registry.list_names()) or "none"
        lines = [self.description, "", f"Supported networks: {networks}", f"Providers: {providers}"]
        for name in self.registry.list_names():
            prompt = self.registry.get(name).get_prompt()
            if prompt:
                lines.extend(["", f"[{name}] {prompt}"])
        return "\n".join(lines).strip()

    def get_parameters_schema(self) -> Dict[str, Any]:
        """JSON schema of the request with network fields restricted to what is registered."""
        schema = self.request_model.model_json_schema(by_alias=False)
        networks = [n.value for n in self.supported_networks()]
        for field in self.network_fields:
            prop = schema.get("properties", {}).get(field)
            if prop is not None:
                prop["enum"] = networks
        return schema

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    @abstractmethod
    def parse_request(self, request: BaseModel) -> Any:
        """Validate a request and convert it to provider params."""

    def _coerce_request(self, request: Union[BaseModel, Mapping[str, Any]]) -> BaseModel:
        return coerce_request(self.request_model, request)

    def validate_network(self, value: Optional[str]) -> Network:
        return check_network(value, self.supported_networks(), self.tool_type)

    @staticmethod
    def validate_token(address: str, network: Network, field: str) -> str:
        address = (address or "").strip()
        if not (is_native_token(address, network) or is_valid_address(address, network)):
            raise StructuredError(
                ErrorStep.TOKEN_NOT_FOUND,
                f"Invalid {field} address for {network.value}: {address}",
                {"token": address, "field": field, "network": network.value},
            )
        return address

    @staticmethod
    def validate_amount(amount: str) -> str:
        try:
            value = parse_amount(amount)
        except ValueError:
            value = None
        if value is None or value <= 0:
            raise StructuredError(
                ErrorStep.TOOL_EXECUTION,
                f"Amount must be a positive number, got {amount!r}",
                {"amount": amount},
            )
        return str(amount).strip()

    async def resolve_wallet_address(self, network: Network) -> str:
        return await resolve_wallet_address(self.wallet, network)

    # ------------------------------------------------------------------
    # Provider selection
    # ------------------------------------------------------------------

    def _candidates(
        self,
        network: Network,
        provider_name: Optional[str],
    ) -> Tuple[List[QuoteProvider], List[Dict[str, Any]]]:
        """Providers to try in order, plus attempts already ruled out."""
        candidates = self.registry.get_by_network(network)
        attempts: List[Dict[str, Any]] = []

        if provider_name:
            preferred = self.registry.get(provider_name)
            if self.registry.supports(provider_name, network):
                candidates = [preferred] + [p for p in candidates if p is not preferred]
            else:
                logger.warning(
                    f"Preferred provider {provider_name} does not support {network.value}; "
                    f"falling back to {[p.name for p in candidates]}"
                )
                attempts.append({
                    "provider": provider_name,
                    "step": ErrorStep.PROVIDER_VALIDATION.value,
                    "error": f"{provider_name} does not support {network.value}",
                })

        if not candidates:
            raise self._unavailable(network, attempts)
        return candidates, attempts

    def _unavailable(self, network: Network, attempts: List[Dict[str, Any]]) -> StructuredError:
        return StructuredError(
            ErrorStep.PROVIDER_AVAILABILITY,
            f"No provider could quote this {self.tool_type.value} on {network.value}",
            {
                "network": network.value,
                "attempts": attempts,
                "supportedNetworks": [n.value for n in self.supported_networks()],
            },
        )

    async def _first_quote(
        self,
        candidates: List[QuoteProvider],
        params: Any,
        wallet_address: str,
        attempts: List[Dict[str, Any]],
    ) -> Tuple[QuoteProvider, Quote]:
        for provider in candidates:
            try:
                quote = await provider.get_quote(params, wallet_address)
            except StructuredError as e:
                if e.step in _NO_FAILOVER:
                    raise
                attempts.append(_attempt(provider, e))
            except Exception as e:
                attempts.append(_attempt(provider, e))
            else:
                return provider, quote
            logger.warning(
                f"Provider {provider.name} failed to quote on {params.network.value}: "
                f"{attempts[-1]['error']}"
            )
        raise self._unavailable(params.network, attempts)

    async def _best_quote(
        self,
        candidates: List[QuoteProvider],
        params: Any,
        wallet_address: str,
        attempts: List[Dict[str, Any]],
    ) -> Tuple[QuoteProvider, Quote]:
        results = await asyncio.gather(
            *(provider.get_quote(params, wallet_address) for provider in candidates),
            return_exceptions=True,
        )

        best: Optional[Tuple[QuoteProvider, Quote]] = None
        for provider, result in zip(candidates, results):
            if isinstance(result, StructuredError) and result.step in _NO_FAILOVER:
                raise result
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                attempts.append(_attempt(provider, result))
                logger.warning(f"Provider {provider.name} failed to quote: {attempts[-1]['error']}")
                continue
            if best is None or self._better(result, best[1]):
                best = (provider, result)

        if best is None:
            raise self._unavailable(params.network, attempts)
        return best

    @staticmethod
    def _better(candidate: Quote, current: Quote) -> bool:
        """Higher output for exact-input quotes, lower input for exact-output ones. Ties keep the earlier provider."""
        if candidate.type == AmountType.OUTPUT:
            return Decimal(candidate.from_amount) < Decimal(current.from_amount)
        return Decimal(candidate.to_amount) > Decimal(current.to_amount)

    async def quote(
        self,
        params: Any,
        wallet_address: str,
        *,
        provider_name: Optional[str] = None,
        selection: str = "first",
    ) -> Tuple[QuoteProvider, Quote]:
        """Select a provider, obtain a quote and store it."""
        candidates, attempts = self._candidates(params.network, provider_name)
        if selection == "best" and len(candidates) > 1:
            provider, quote = await self._best_quote(candidates, params, wallet_address, attempts)
        else:
            provider, quote = await self._first_quote(candidates, params, wallet_address, attempts)

        self.quote_store.store(quote, ttl=provider.quote_ttl_seconds)
        logger.info(
            f"Stored {self.tool_type.value} quote {quote.quote_id[:12]} from {provider.name}: "
            f"{quote.from_amount} {quote.from_token.symbol} -> {quote.to_amount} {quote.to_token.symbol}"
        )
        return provider, quote

    async def get_quote(
        self,
        request: Union[BaseModel, Mapping[str, Any]],
        wallet_address: Optional[str] = None,
    ) -> Tuple[QuoteProvider, Quote]:
        """Validate a request and return the selected provider with its stored quote. Raises StructuredError."""
        request = self._coerce_request(request)
        params = self.parse_request(request)
        wallet_address = wallet_address or await self.resolve_wallet_address(params.network)
        return await self.quote(
            params,
            wallet_address,
            provider_name=getattr(request, "provider", None),
            selection=getattr(request, "selection", "first"),
        )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @staticmethod
    async def _progress(on_progress: Optional[ProgressCallback], progress: int, message: str, **data: Any) -> None:
        if on_progress is None:
            return
        result = on_progress(ToolProgress(progress=progress, message=message, data=data))
        if inspect.isawaitable(result):
            await result

    async def _execute(
        self,
        quote_id: str,
        wallet_address: str,
        on_progress: Optional[ProgressCallback],
    ) -> SuccessEnvelope:
        quote = self.quote_store.get(quote_id)
        provider = self.registry.get(quote.provider)

        await self._progress(on_progress, 40, "Checking balance", quoteId=quote_id)
        if to_base_units(quote.from_amount, quote.from_token.decimals) <= 0:
            raise ZeroAmountError(quote.from_token.address, quote.network.value, quote.from_amount)

        check = await provider.check_balance(quote, wallet_address)
        logger.info(f"Balance check for quote {quote_id[:12]}: valid={check.is_valid}")
        if not check.is_valid:
            raise InsufficientBalanceError(
                check.message or "Insufficient balance",
                {
                    "network": quote.network.value,
                    "token": quote.from_token.address,
                    "amount": quote.from_amount,
                    **check.details,
                },
            )

        await self._progress(on_progress, 60, "Building transaction")
        tx = await provider.build_transaction(quote, wallet_address)
        approval: Optional[FinalReceipt] = None
        if self.registry.is_allowance_capable(provider.name):
            approval = await self.allowance_manager.ensure_allowance(
                provider, quote, tx, wallet_address, self.executor
            )
            if approval is not None:
                logger.info(f"Approval confirmed: {approval.hash}")

        await self._progress(on_progress, 80, f"Executing {self.tool_type.value}")
        final = await self.executor.execute_and_wait(quote.network, tx)

        await self._progress(on_progress, 100, "Completed", transactionHash=final.hash)
        return self.build_success(quote, final, approval)

    def build_success(
        self,
        quote: Quote,
        final: FinalReceipt,
        approval: Optional[FinalReceipt],
    ) -> SuccessEnvelope:
        return SuccessEnvelope(
            provider=quote.provider,
            from_token=TokenInfo.from_token(quote.from_token),
            to_token=TokenInfo.from_token(quote.to_token),
            from_amount=quote.from_amount,
            to_amount=quote.to_amount,
            transaction_hash=final.hash,
            network=quote.network.value,
            price_impact=quote.price_impact,
            type=quote.type,
            quote_id=quote.quote_id,
            approval_hash=approval.hash if approval else None,
            **self.success_fields(quote),
        )

    def success_fields(self, quote: Quote) -> Dict[str, Any]:
        """Variant specific envelope fields."""
        return {}

    def error_envelope(self, error: Any, params: Optional[Mapping[str, Any]] = None) -> ErrorEnvelope:
        structured = classify_error(error, {"tool": self.tool_type.value})
        log_structured_error(logger, f"{self.tool_type.value} tool", structured)
        return ErrorEnvelope(
            error_step=structured.step,
            message=structured.message,
            details=structured.details,
            suggestion=generate_suggestion(structured, self.tool_type, params),
        )

    async def run(
        self,
        request: Union[BaseModel, Mapping[str, Any]],
        on_progress: Optional[ProgressCallback] = None,
    ) -> ToolResult:
        """Quote and execute in one go."""
        params_view: Dict[str, Any] = dict(request) if isinstance(request, Mapping) else request.model_dump()
        with structlog.contextvars.bound_contextvars(tool=self.tool_type.value):
            try:
                await self._progress(on_progress, 0, f"Starting {self.tool_type.value}")
                coerced = self._coerce_request(request)
                params = self.parse_request(coerced)
                wallet_address = await self.resolve_wallet_address(params.network)

                await self._progress(on_progress, 10, "Getting quote")
                provider, quote = await self.quote(
                    params,
                    wallet_address,
                    provider_name=getattr(coerced, "provider", None),
                    selection=getattr(coerced, "selection", "first"),
                )
                await self._progress(
                    on_progress, 20, "Quote received", provider=provider.name, quoteId=quote.quote_id
                )

                with structlog.contextvars.bound_contextvars(quote_id=quote.quote_id):
                    return await self._execute(quote.quote_id, wallet_address, on_progress)
            except Exception as e:
                return self.error_envelope(e, params_view)

    async def execute_quote(
        self,
        quote_id: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ToolResult:
        """Execute a previously stored quote, if it is still valid."""
        params_view: Dict[str, Any] = {"quoteId": quote_id}
        with structlog.contextvars.bound_contextvars(tool=self.tool_type.value, quote_id=quote_id):
            try:
                quote = self.quote_store.get(quote_id)
                params_view["network"] = quote.network.value
                wallet_address = await self.resolve_wallet_address(quote.network)
                return await self._execute(quote_id, wallet_address, on_progress)
            except Exception as e:
                return self.error_envelope(e, params_view)

    def default_slippage(self, value: Optional[int]) -> int:
        return settings.default_slippage_bps if value is None else value
