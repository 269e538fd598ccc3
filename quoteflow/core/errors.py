"""
Error Classification

Every failure in the quote → validate → approve → execute pipeline is expressed as a
StructuredError tagged with the pipeline step that produced it. Outer layers never
re-tag an error that already carries a step; they only classify bare exceptions.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping, Optional


class ErrorStep(str, Enum):
    """Closed set of pipeline steps an error can be attributed to."""

    NETWORK_VALIDATION = "network_validation"
    WALLET_ACCESS = "wallet_access"
    PROVIDER_VALIDATION = "provider_validation"
    PROVIDER_AVAILABILITY = "provider_availability"
    TOKEN_NOT_FOUND = "token_not_found"
    PRICE_RETRIEVAL = "price_retrieval"
    TOOL_EXECUTION = "tool_execution"
    DATA_RETRIEVAL = "data_retrieval"
    INITIALIZATION = "initialization"
    EXECUTION = "execution"
    UNKNOWN = "unknown"


class StructuredError(Exception):
    """
    Error carrying a pipeline step, machine-readable details and a message.

    Instances are treated as immutable once raised.
    """

    def __init__(
        self,
        step: ErrorStep,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(message)
        self.step = step
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step.value,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(step={self.step.value!r}, message={self.message!r})"


class ProviderNotFoundError(StructuredError):
    """Requested provider name is not registered."""

    def __init__(self, name: str, available: Optional[list] = None):
        super().__init__(
            ErrorStep.PROVIDER_VALIDATION,
            f"Provider {name} not found",
            {"provider": name, "availableProviders": list(available or [])},
        )


class QuoteNotFoundError(StructuredError):
    """No quote with that id was ever stored (or it was evicted and forgotten)."""

    def __init__(self, quote_id: str):
        super().__init__(
            ErrorStep.EXECUTION,
            "Quote expired or not found. Please get a new quote.",
            {"quoteId": quote_id, "reason": "quote_not_found"},
        )


class QuoteExpiredError(StructuredError):
    """The quote's validity window has closed."""

    def __init__(self, quote_id: str, expires_at: float, now: float):
        super().__init__(
            ErrorStep.EXECUTION,
            "Quote expired. Please get a new quote.",
            {
                "quoteId": quote_id,
                "reason": "quote_expired",
                "expiresAt": expires_at,
                "checkedAt": now,
            },
        )


class InsufficientBalanceError(StructuredError):
    """Balance validation failed; the message is safe to show verbatim."""

    def __init__(self, message: str, details: Optional[Mapping[str, Any]] = None):
        merged = {"reason": "insufficient_balance", **dict(details or {})}
        super().__init__(ErrorStep.EXECUTION, message, merged)


class ZeroAmountError(StructuredError):
    """Nothing is left to spend, typically after the gas reserve was withheld."""

    def __init__(self, token: str, network: str, requested: Optional[str] = None):
        super().__init__(
            ErrorStep.EXECUTION,
            "Amount to spend is zero after reserving gas. Nothing to execute.",
            {"reason": "zero_amount", "token": token, "network": network, "requestedAmount": requested},
        )


GENERIC_FAILURE_MESSAGE = "The operation failed unexpectedly. Please try again."


def classify_error(
    error: Any,
    context: Optional[Mapping[str, Any]] = None,
) -> StructuredError:
    """
    Wrap any failure into a StructuredError.

    An error that already carries a step is returned unchanged so that the deepest,
    most specific classification wins. Bare exceptions become EXECUTION errors with the
    original message kept in details["error"]; anything else becomes UNKNOWN.
    """
    if isinstance(error, StructuredError):
        return error

    details: Dict[str, Any] = dict(context or {})
    if isinstance(error, Exception):
        details["error"] = str(error) or type(error).__name__
        details.setdefault("errorType", type(error).__name__)
        return StructuredError(ErrorStep.EXECUTION, GENERIC_FAILURE_MESSAGE, details)

    details["error"] = str(error)
    return StructuredError(ErrorStep.UNKNOWN, GENERIC_FAILURE_MESSAGE, details)
