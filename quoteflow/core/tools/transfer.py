from __future__ import annotations

from typing import Any, Dict

from ..chain_types import is_valid_address
from ..errors import ErrorStep, StructuredError
from ..models import Quote, QuoteKind, TransferParams
from ..suggestions import ToolType
from ...types.requests import TransferRequest
from .base import QuoteTool


class TransferTool(QuoteTool):
    tool_type = ToolType.TRANSFER
    kind = QuoteKind.TRANSFER
    request_model = TransferRequest
    description = "Send native currency or tokens to another address on the same network."

    def parse_request(self, request: TransferRequest) -> TransferParams:
        network = self.validate_network(request.network)
        to_address = (request.to_address or "").strip()
        if not is_valid_address(to_address, network):
            raise StructuredError(
                ErrorStep.TOOL_EXECUTION,
                f"Invalid recipient address for {network.value}: {to_address}",
                {"toAddress": to_address, "network": network.value},
            )

        return TransferParams(
            network=network,
            token=self.validate_token(request.token, network, "token"),
            to_address=to_address,
            amount=self.validate_amount(request.amount),
        )

    def success_fields(self, quote: Quote) -> Dict[str, Any]:
        return {"to_address": quote.recipient}
