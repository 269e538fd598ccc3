"""
Human-facing remediation hints layered on top of the error taxonomy.

The taxonomy itself lives in errors.py; nothing here changes a step or its details.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import ErrorStep, StructuredError


class ToolType(str, Enum):
    SWAP = "swap"
    BRIDGE = "bridge"
    STAKING = "staking"
    TRANSFER = "transfer"
    WALLET_BALANCE = "wallet_balance"
    STAKING_POSITIONS = "staking_positions"


_ERROR_PREFIX: Dict[ToolType, str] = {
    ToolType.SWAP: "[Swap Tool Error] ",
    ToolType.BRIDGE: "[Bridge Tool Error] ",
    ToolType.STAKING: "[Staking Tool Error] ",
    ToolType.TRANSFER: "[Transfer Tool Error] ",
    ToolType.WALLET_BALANCE: "[Wallet Balance Tool Error] ",
    ToolType.STAKING_POSITIONS: "[Staking Positions Tool Error] ",
}

_ACTION_VERB: Dict[ToolType, str] = {
    ToolType.SWAP: "swap",
    ToolType.BRIDGE: "bridge",
    ToolType.STAKING: "stake",
    ToolType.TRANSFER: "transfer",
    ToolType.WALLET_BALANCE: "read balances",
    ToolType.STAKING_POSITIONS: "read staking positions",
}


def format_suggestion(suggestion: str, step: ErrorStep, alternative_actions: List[str]) -> str:
    """Append the process stage and a bullet list of things to try."""
    stage = step.value.replace("_", " ").capitalize()
    text = f"{suggestion}\n\n**Process Stage:** {stage}\n\n"
    if alternative_actions:
        text += "**Suggested actions you can try:**\n"
        for action in alternative_actions:
            text += f"- {action}\n"
    return text


def _join(values: Any) -> str:
    if not values:
        return "none"
    return ", ".join(str(v) for v in values)


def _first(values: Any, default: str) -> str:
    if values:
        return str(list(values)[0])
    return default


def _suggest(
    error: StructuredError,
    tool: ToolType,
    params: Mapping[str, Any],
) -> Tuple[str, List[str]]:
    details = error.details
    verb = _ACTION_VERB[tool]
    network = details.get("network") or params.get("network") or "the requested network"
    step = error.step

    if step == ErrorStep.NETWORK_VALIDATION:
        networks = details.get("supportedNetworks") or []
        requested = details.get("requestedNetwork") or network
        return (
            f'Network validation failed: "{requested}" is not supported for {verb} operations. '
            f"Please use one of these networks: {_join(networks)}.",
            [
                f'Try with a supported network, e.g. "{verb} on {_first(networks, "ethereum")}"',
                "Check the network name for typos",
            ],
        )

    if step == ErrorStep.WALLET_ACCESS:
        return (
            f"Wallet access failed: could not get a wallet address for the {network} network. "
            "Please ensure your wallet is connected and supports this network.",
            [
                "Reconnect your wallet",
                f"Try a different network than {network}",
            ],
        )

    if step == ErrorStep.PROVIDER_VALIDATION:
        available = details.get("availableProviders") or []
        provider = details.get("provider") or params.get("provider") or "the requested provider"
        return (
            f"Provider validation failed: {provider} cannot handle this request. "
            f"Available providers: {_join(available)}.",
            [
                f"Retry without specifying a provider so the first available one is used",
                f"Pick another provider, e.g. {_first(available, 'any registered provider')}",
            ],
        )

    if step == ErrorStep.PROVIDER_AVAILABILITY:
        supported = details.get("supportedNetworks") or []
        attempts = details.get("attempts") or []
        tried = [a.get("provider") for a in attempts if isinstance(a, dict) and a.get("provider")]
        suffix = f" Providers tried: {_join(tried)}." if tried else ""
        return (
            f"Provider availability issue: no provider could {verb} on {network}.{suffix} "
            f"Supported networks: {_join(supported)}.",
            [
                "Try again in a few moments",
                f"Try a supported network, e.g. {_first(supported, 'ethereum')}",
                "Try a smaller amount or a different token pair",
            ],
        )

    if step == ErrorStep.TOKEN_NOT_FOUND:
        token = details.get("token") or details.get("address") or "the token"
        return (
            f"Token lookup failed: {token} is not a valid token on {network}. "
            "Please double-check the token address.",
            [
                "Use the token contract address (or mint on Solana) rather than its symbol",
                "Verify the token exists on this network",
            ],
        )

    if step == ErrorStep.PRICE_RETRIEVAL:
        return (
            f"Price retrieval failed: could not price this {verb} right now.",
            ["Try again shortly", "Try a more liquid token pair"],
        )

    if step == ErrorStep.DATA_RETRIEVAL:
        return (
            f"Data retrieval failed: could not read on-chain data for {network}. "
            "The RPC endpoint may be unavailable.",
            ["Try again shortly", "Check the RPC endpoint configuration"],
        )

    if step == ErrorStep.INITIALIZATION:
        return (
            f"Initialization failed: the {verb} tool is not configured correctly.",
            ["Check the provider configuration", "Restart the service after fixing configuration"],
        )

    if step == ErrorStep.TOOL_EXECUTION:
        return (
            f"Invalid request: {error.message}",
            ["Check your input parameters", f"Specify a positive amount to {verb}"],
        )

    if step == ErrorStep.EXECUTION:
        reason = details.get("reason")
        if reason in ("quote_expired", "quote_not_found"):
            return (
                "The quote is no longer valid. A fresh quote is required before executing.",
                [f"Request a new {verb} quote and execute it promptly"],
            )
        if reason == "insufficient_balance":
            return (
                f"Insufficient balance: {error.message}",
                [
                    "Reduce the amount",
                    "Add funds to your wallet, keeping some native currency for gas",
                ],
            )
        if reason == "zero_amount":
            return (
                "The amount left after reserving gas is zero.",
                ["Add native currency to cover gas", "Specify a smaller amount"],
            )
        return (
            f"Execution failed: the {verb} could not be completed.",
            ["Check your balance and allowance", "Try again later"],
        )

    return (
        f"Operation failed: {error.message}",
        ["Try a different command", "Check your input parameters", "Try again later"],
    )


def generate_suggestion(
    error: StructuredError,
    tool: ToolType,
    params: Optional[Mapping[str, Any]] = None,
    error_prefix: Optional[str] = None,
) -> str:
    """Build the non-empty suggestion string shown next to an error envelope."""
    prefix = error_prefix if error_prefix is not None else _ERROR_PREFIX[tool]
    suggestion, actions = _suggest(error, tool, params or {})
    return format_suggestion(f"{prefix}{suggestion}", error.step, actions)
