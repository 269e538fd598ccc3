from typing import Any, Dict, Union

from fastapi import APIRouter, Depends, HTTPException

from ..core.factory import Toolkit
from ..types.envelope import BalanceEnvelope, ErrorEnvelope, PositionsEnvelope, SuccessEnvelope
from ..types.requests import (
    BridgeRequest,
    StakingPositionsRequest,
    StakingRequest,
    SwapRequest,
    TransferRequest,
    WalletBalanceRequest,
)
from .deps import get_toolkit

router = APIRouter(prefix="/tools")

ToolResponse = Union[SuccessEnvelope, ErrorEnvelope]


@router.post("/swap", response_model=ToolResponse)
async def swap_endpoint(req: SwapRequest, toolkit: Toolkit = Depends(get_toolkit)) -> ToolResponse:
    """Quote and execute a same-network swap"""
    return await toolkit.swap.run(req)


@router.post("/bridge", response_model=ToolResponse)
async def bridge_endpoint(req: BridgeRequest, toolkit: Toolkit = Depends(get_toolkit)) -> ToolResponse:
    """Quote and execute a cross-network bridge"""
    return await toolkit.bridge.run(req)


@router.post("/stake", response_model=ToolResponse)
async def stake_endpoint(req: StakingRequest, toolkit: Toolkit = Depends(get_toolkit)) -> ToolResponse:
    """Deposit into or withdraw from a vault"""
    return await toolkit.staking.run(req)


@router.post("/transfer", response_model=ToolResponse)
async def transfer_endpoint(req: TransferRequest, toolkit: Toolkit = Depends(get_toolkit)) -> ToolResponse:
    """Send native currency or tokens"""
    return await toolkit.transfer.run(req)


@router.post("/balances", response_model=Union[BalanceEnvelope, ErrorEnvelope])
async def balances_endpoint(
    req: WalletBalanceRequest, toolkit: Toolkit = Depends(get_toolkit)
) -> Union[BalanceEnvelope, ErrorEnvelope]:
    """Native and token balances of a wallet"""
    return await toolkit.wallet_balance.run(req)


@router.post("/positions", response_model=Union[PositionsEnvelope, ErrorEnvelope])
async def positions_endpoint(
    req: StakingPositionsRequest, toolkit: Toolkit = Depends(get_toolkit)
) -> Union[PositionsEnvelope, ErrorEnvelope]:
    """Vault positions of a wallet on one network"""
    return await toolkit.staking_positions.run(req)


@router.get("/{tool}/description")
async def tool_description(tool: str, toolkit: Toolkit = Depends(get_toolkit)) -> Dict[str, Any]:
    """Tool description and request schema, restricted to the registered networks"""
    selected = toolkit.tools.get(tool) or toolkit.read_tools.get(tool)
    if selected is None:
        raise HTTPException(status_code=404, detail=f"Unknown tool '{tool}'")

    return {
        "name": tool,
        "description": selected.get_description(),
        "parameters": selected.get_parameters_schema(),
    }
