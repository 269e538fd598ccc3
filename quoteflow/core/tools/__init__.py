"""
Tools that run the quote lifecycle end to end and answer with envelopes, plus the
read-only portfolio tools.
"""

from .base import ProgressCallback, QuoteTool
from .bridge import BridgeTool
from .portfolio import ReadTool, StakingPositionsTool, WalletBalanceTool
from .staking import StakingTool
from .swap import SwapTool
from .transfer import TransferTool

__all__ = [
    "ProgressCallback",
    "QuoteTool",
    "ReadTool",
    "BridgeTool",
    "StakingPositionsTool",
    "StakingTool",
    "SwapTool",
    "TransferTool",
    "WalletBalanceTool",
]
