"""Dependencies shared by the API routes."""

from fastapi import Request

from slackmux.mux.dispatcher import MuxDispatcher
from slackmux.mux.models import MuxConfig


def get_mux_config(request: Request) -> MuxConfig:
    """Mux configuration loaded at startup."""
    return request.app.state.app_config.mux


def get_dispatcher(request: Request) -> MuxDispatcher:
    """Dispatcher bound to the shared HTTP client."""
    return request.app.state.dispatcher
