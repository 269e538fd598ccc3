from __future__ import annotations

from typing import Any, Dict

from ..chain_types import is_valid_address, lookup_network
from ..errors import ErrorStep, StructuredError
from ..models import BridgeParams, Quote, QuoteKind
from ..suggestions import ToolType
from ...types.requests import BridgeRequest
from .base import QuoteTool


class BridgeTool(QuoteTool):
    """Cross-network transfers of value; the spend happens on the origin network."""

    tool_type = ToolType.BRIDGE
    kind = QuoteKind.BRIDGE
    request_model = BridgeRequest
    network_fields = ("from_network", "to_network")
    description = (
        "Bridge tokens from one network to another. The origin network pays gas; the "
        "recipient defaults to the same wallet on the destination network."
    )

    def parse_request(self, request: BridgeRequest) -> BridgeParams:
        from_network = self.validate_network(request.from_network)
        to_network = lookup_network(request.to_network)
        if to_network is None:
            raise StructuredError(
                ErrorStep.NETWORK_VALIDATION,
                f'Network "{request.to_network}" is not supported for bridge',
                {
                    "requestedNetwork": request.to_network,
                    "supportedNetworks": [n.value for n in self.supported_networks()],
                },
            )
        if to_network == from_network:
            raise StructuredError(
                ErrorStep.TOOL_EXECUTION,
                "Origin and destination networks must differ; use a swap instead",
                {"fromNetwork": from_network.value, "toNetwork": to_network.value},
            )

        recipient = request.recipient
        if recipient is not None and not is_valid_address(recipient, to_network):
            raise StructuredError(
                ErrorStep.TOOL_EXECUTION,
                f"Invalid recipient address for {to_network.value}: {recipient}",
                {"recipient": recipient, "network": to_network.value},
            )

        return BridgeParams(
            from_network=from_network,
            to_network=to_network,
            from_token=self.validate_token(request.from_token, from_network, "from_token"),
            to_token=self.validate_token(request.to_token, to_network, "to_token"),
            amount=self.validate_amount(request.amount),
            type=request.type,
            slippage_bps=self.default_slippage(request.slippage_bps),
            recipient=recipient,
        )

    def success_fields(self, quote: Quote) -> Dict[str, Any]:
        return {"to_network": quote.to_network.value if quote.to_network else None}
