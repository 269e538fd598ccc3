from __future__ import annotations

from ..errors import ErrorStep, StructuredError
from ..models import QuoteKind, SwapParams
from ..suggestions import ToolType
from ...types.requests import SwapRequest
from .base import QuoteTool


class SwapTool(QuoteTool):
    """Same-network token swaps."""

    tool_type = ToolType.SWAP
    kind = QuoteKind.SWAP
    request_model = SwapRequest
    description = (
        "Swap one token for another on the same network. Amounts are in human units; "
        "type=input spends exactly the amount, type=output receives exactly the amount."
    )

    def parse_request(self, request: SwapRequest) -> SwapParams:
        network = self.validate_network(request.network)
        from_token = self.validate_token(request.from_token, network, "from_token")
        to_token = self.validate_token(request.to_token, network, "to_token")
        if from_token.lower() == to_token.lower():
            raise StructuredError(
                ErrorStep.TOOL_EXECUTION,
                "Cannot swap a token for itself",
                {"fromToken": from_token, "toToken": to_token},
            )

        return SwapParams(
            network=network,
            from_token=from_token,
            to_token=to_token,
            amount=self.validate_amount(request.amount),
            type=request.type,
            slippage_bps=self.default_slippage(request.slippage_bps),
        )
