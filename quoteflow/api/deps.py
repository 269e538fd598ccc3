from fastapi import Request

from ..core.factory import Toolkit


def get_toolkit(request: Request) -> Toolkit:
    """Toolkit built at startup and kept on the application state."""
    return request.app.state.toolkit
