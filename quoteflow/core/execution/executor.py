"""
Transaction executor.

Submits payloads through the wallet and awaits inclusion. There are no automatic
retries: a failed submission or a reverted receipt surfaces as an EXECUTION error.
"""

import logging

from ..chain_types import Network
from ..errors import ErrorStep, StructuredError
from ..models import TransactionPayload
from .wallet import FinalReceipt, Receipt, Wallet


logger = logging.getLogger(__name__)


class TransactionRevertError(StructuredError):
    """Transaction was included but reverted on-chain."""

    def __init__(self, receipt: FinalReceipt):
        super().__init__(
            ErrorStep.EXECUTION,
            "Transaction reverted on-chain.",
            {
                "reason": "reverted",
                "transactionHash": receipt.hash,
                "network": receipt.network.value,
                "blockNumber": receipt.block_number,
            },
        )


class TransactionExecutor:
    """Thin submission layer over a Wallet."""

    def __init__(self, wallet: Wallet):
        self.wallet = wallet

    async def execute(self, network: Network, payload: TransactionPayload) -> Receipt:
        """Sign and broadcast; returns as soon as the wallet hands back a hash."""
        if payload.network != network:
            raise StructuredError(
                ErrorStep.EXECUTION,
                "Transaction was built for a different network.",
                {"reason": "network_mismatch", "network": network.value, "payloadNetwork": payload.network.value},
            )

        try:
            receipt = await self.wallet.sign_and_send_transaction(network, payload)
        except StructuredError:
            raise
        except Exception as e:
            raise StructuredError(
                ErrorStep.EXECUTION,
                "Failed to submit transaction.",
                {"error": str(e), "network": network.value, "to": payload.to},
            ) from e

        logger.info(f"Transaction submitted: {receipt.hash} on {network.value}")
        return receipt

    async def wait(self, receipt: Receipt) -> FinalReceipt:
        try:
            final = await receipt.wait()
        except StructuredError:
            raise
        except Exception as e:
            raise StructuredError(
                ErrorStep.EXECUTION,
                "Failed while waiting for transaction confirmation.",
                {"error": str(e), "transactionHash": receipt.hash, "network": receipt.network.value},
            ) from e

        if not final.succeeded:
            raise TransactionRevertError(final)

        logger.info(f"Transaction confirmed: {final.hash} (block {final.block_number})")
        return final

    async def execute_and_wait(self, network: Network, payload: TransactionPayload) -> FinalReceipt:
        receipt = await self.execute(network, payload)
        return await self.wait(receipt)
