from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..core.factory import Toolkit
from .deps import get_toolkit

router = APIRouter()


@router.get("/healthz")
async def health_check(toolkit: Toolkit = Depends(get_toolkit)) -> Dict[str, Any]:
    """Registered providers and supported networks per tool"""

    tools: Dict[str, Any] = {}
    for name, tool in toolkit.tools.items():
        tools[name] = {
            "providers": tool.registry.list_names(),
            "networks": [n.value for n in tool.supported_networks()],
        }

    available = sum(1 for info in tools.values() if info["providers"])

    return {
        "status": "healthy" if available == len(tools) else "degraded",
        "tools": tools,
        "quotes_cached": len(toolkit.quote_store),
        "sweeper_running": toolkit.quote_store.running,
    }
