"""Provider registry: named backend adapters indexed by supported network.

Registration order is preserved and is the tie-break for automatic provider
selection. Each provider's network set is captured once at ``register()`` time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .adapters.base import QuoteProvider
from .chain_types import Network
from .errors import ErrorStep, ProviderNotFoundError, StructuredError

logger = logging.getLogger(__name__)

_ALLOWANCE_METHODS = ("check_allowance", "build_approve_transaction")


@dataclass(frozen=True)
class ProviderEntry:
    provider: QuoteProvider
    networks: Tuple[Network, ...]
    allowance_capable: bool


class ProviderRegistry:
    """Registry of quote providers.

    Usage:
        registry = ProviderRegistry()
        registry.register(RelaySwapProvider(...))
        providers = registry.get_by_network(Network.BASE)
    """

    def __init__(self) -> None:
        self._entries: Dict[str, ProviderEntry] = {}

    def register(self, provider: QuoteProvider) -> ProviderEntry:
        name = provider.name
        if name in self._entries:
            raise StructuredError(
                ErrorStep.INITIALIZATION,
                f"Provider {name} is already registered",
                {"provider": name},
            )

        present = [m for m in _ALLOWANCE_METHODS if callable(getattr(provider, m, None))]
        if len(present) == 1:
            missing = [m for m in _ALLOWANCE_METHODS if m not in present]
            raise StructuredError(
                ErrorStep.INITIALIZATION,
                f"Provider {name} implements only part of the allowance capability",
                {"provider": name, "implemented": present, "missing": missing},
            )

        entry = ProviderEntry(
            provider=provider,
            networks=tuple(dict.fromkeys(provider.get_supported_networks())),
            allowance_capable=len(present) == len(_ALLOWANCE_METHODS),
        )
        self._entries[name] = entry
        logger.debug(f"Registered provider: {name} ({', '.join(sorted(n.value for n in entry.networks))})")
        return entry

    def get(self, name: str) -> QuoteProvider:
        entry = self._entries.get(name)
        if entry is None:
            raise ProviderNotFoundError(name, self.list_names())
        return entry.provider

    def get_by_network(self, network: Network) -> List[QuoteProvider]:
        """Providers supporting ``network`` in registration order; empty if none."""
        return [e.provider for e in self._entries.values() if network in e.networks]

    def supports(self, name: str, network: Network) -> bool:
        entry = self._entries.get(name)
        return entry is not None and network in entry.networks

    def is_allowance_capable(self, name: str) -> bool:
        entry = self._entries.get(name)
        return entry is not None and entry.allowance_capable

    def list_names(self) -> List[str]:
        return list(self._entries)

    def supported_networks(self) -> List[Network]:
        """Union of registered networks in first-seen order."""
        seen: List[Network] = []
        for entry in self._entries.values():
            for network in entry.networks:
                if network not in seen:
                    seen.append(network)
        return seen

    def __len__(self) -> int:
        return len(self._entries)
