"""Wallet collaborator contract and receipt types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol, runtime_checkable

from ..chain_types import Network
from ..models import TransactionPayload


@dataclass(frozen=True)
class FinalReceipt:
    """Inclusion result of a submitted transaction."""

    hash: str
    network: Network
    status: int = 1  # 1 = success, 0 = reverted
    block_number: Optional[int] = None
    gas_used: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class Receipt:
    """Handle for a submitted transaction; ``await receipt.wait()`` resolves on inclusion."""

    def __init__(
        self,
        hash: str,
        network: Network,
        waiter: Callable[[], Awaitable[FinalReceipt]],
    ):
        self.hash = hash
        self.network = network
        self._waiter = waiter
        self._final: Optional[FinalReceipt] = None

    async def wait(self) -> FinalReceipt:
        if self._final is None:
            self._final = await self._waiter()
        return self._final

    def __repr__(self) -> str:
        return f"Receipt(hash={self.hash!r}, network={self.network.value!r})"


@runtime_checkable
class Wallet(Protocol):
    """Signs and submits transactions. Key custody lives behind this interface."""

    async def get_address(self, network: Network) -> str:
        ...

    async def sign_message(self, network: Network, message: str) -> str:
        ...

    async def sign_and_send_transaction(self, network: Network, payload: TransactionPayload) -> Receipt:
        ...
