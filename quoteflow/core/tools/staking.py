from __future__ import annotations

from typing import Any, Dict

from ..models import Quote, QuoteKind, StakingParams
from ..suggestions import ToolType
from ...types.requests import StakingRequest
from .base import QuoteTool


class StakingTool(QuoteTool):
    tool_type = ToolType.STAKING
    kind = QuoteKind.STAKING
    request_model = StakingRequest
    description = (
        "Stake into or withdraw from a yield vault. supply/stake deposit the underlying "
        "asset; withdraw/unstake take out an exact amount of the underlying asset."
    )

    def parse_request(self, request: StakingRequest) -> StakingParams:
        network = self.validate_network(request.network)
        return StakingParams(
            network=network,
            token=self.validate_token(request.token, network, "token"),
            vault=self.validate_token(request.vault, network, "vault"),
            amount=self.validate_amount(request.amount),
            action=request.action,
        )

    def success_fields(self, quote: Quote) -> Dict[str, Any]:
        return {"action": quote.action.value if quote.action else None}
