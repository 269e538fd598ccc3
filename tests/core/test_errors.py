"""
Tests for the error taxonomy and the remediation suggestions built on it.
"""

import pytest

from quoteflow.core.errors import (
    GENERIC_FAILURE_MESSAGE,
    ErrorStep,
    InsufficientBalanceError,
    QuoteExpiredError,
    StructuredError,
    ZeroAmountError,
    classify_error,
)
from quoteflow.core.suggestions import ToolType, format_suggestion, generate_suggestion


# ============================================================================
# classify_error
# ============================================================================


class TestClassifyError:
    def test_structured_error_passes_through_unchanged(self):
        error = StructuredError(ErrorStep.PRICE_RETRIEVAL, "backend down", {"provider": "relay"})

        assert classify_error(error) is error
        assert classify_error(error, {"tool": "swap"}).details == {"provider": "relay"}

    def test_subclasses_keep_their_step(self):
        error = InsufficientBalanceError("Insufficient USDC balance")

        classified = classify_error(error)

        assert classified.step == ErrorStep.EXECUTION
        assert classified.details["reason"] == "insufficient_balance"

    def test_bare_exception_becomes_execution(self):
        classified = classify_error(RuntimeError("nonce too low"), {"tool": "swap"})

        assert classified.step == ErrorStep.EXECUTION
        assert classified.message == GENERIC_FAILURE_MESSAGE
        assert classified.details == {"tool": "swap", "error": "nonce too low", "errorType": "RuntimeError"}

    def test_exception_without_message_uses_type_name(self):
        assert classify_error(TimeoutError()).details["error"] == "TimeoutError"

    def test_non_exception_becomes_unknown(self):
        classified = classify_error("something odd")

        assert classified.step == ErrorStep.UNKNOWN
        assert classified.details["error"] == "something odd"

    def test_to_dict_uses_step_value(self):
        error = StructuredError(ErrorStep.TOKEN_NOT_FOUND, "nope", {"token": "0xabc"})

        assert error.to_dict() == {"step": "token_not_found", "message": "nope", "details": {"token": "0xabc"}}

    def test_step_set_is_closed(self):
        assert {s.value for s in ErrorStep} == {
            "network_validation",
            "wallet_access",
            "provider_validation",
            "provider_availability",
            "token_not_found",
            "price_retrieval",
            "tool_execution",
            "data_retrieval",
            "initialization",
            "execution",
            "unknown",
        }


# ============================================================================
# Suggestions
# ============================================================================


class TestSuggestions:
    @pytest.mark.parametrize("step", list(ErrorStep))
    @pytest.mark.parametrize("tool", list(ToolType))
    def test_every_step_has_a_suggestion(self, step, tool):
        text = generate_suggestion(StructuredError(step, "boom"), tool)

        assert text.strip()
        assert "**Process Stage:**" in text

    def test_network_validation_names_supported_networks(self):
        error = StructuredError(
            ErrorStep.NETWORK_VALIDATION,
            "unsupported",
            {"requestedNetwork": "fantom", "supportedNetworks": ["ethereum", "base"]},
        )

        text = generate_suggestion(error, ToolType.SWAP)

        assert text.startswith("[Swap Tool Error] ")
        assert '"fantom"' in text
        assert "ethereum, base" in text

    def test_provider_availability_lists_attempts(self):
        error = StructuredError(
            ErrorStep.PROVIDER_AVAILABILITY,
            "none",
            {
                "network": "base",
                "attempts": [{"provider": "relay", "step": "price_retrieval", "error": "503"}],
                "supportedNetworks": ["base"],
            },
        )

        assert "Providers tried: relay" in generate_suggestion(error, ToolType.BRIDGE)

    def test_expired_quote_asks_for_a_new_one(self):
        text = generate_suggestion(QuoteExpiredError("ab", 10.0, 11.0), ToolType.TRANSFER)

        assert "no longer valid" in text
        assert "Request a new transfer quote" in text

    def test_zero_amount_has_dedicated_hint(self):
        text = generate_suggestion(ZeroAmountError("0xeee", "base", "1"), ToolType.SWAP)

        assert "zero" in text

    def test_custom_prefix(self):
        text = generate_suggestion(StructuredError(ErrorStep.UNKNOWN, "boom"), ToolType.SWAP, error_prefix="")

        assert text.startswith("Operation failed: boom")

    def test_format_suggestion_bullets(self):
        text = format_suggestion("Hint.", ErrorStep.DATA_RETRIEVAL, ["one", "two"])

        assert "**Process Stage:** Data retrieval" in text
        assert "- one\n- two\n" in text
