"""FastAPI application."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request, Response

from slackmux import __version__
from slackmux.api.routes import inbound
from slackmux.core.config import get_settings
from slackmux.core.exceptions import APIException
from slackmux.core.logging import get_logger
from slackmux.mux.dispatcher import MuxDispatcher
from slackmux.mux.loader import load_app_config

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Load the mux configuration and open the shared delivery client."""
    settings = get_settings()
    app_config = load_app_config(settings.mux_config_path)

    for endpoint, destination in app_config.mux.unresolved_destinations():
        logger.warning("destination_not_configured", endpoint=endpoint, destination=destination)
    for endpoint, token_name in app_config.mux.unresolved_tokens():
        logger.warning("token_not_configured", endpoint=endpoint, token_name=token_name)

    async with httpx.AsyncClient(headers={"User-Agent": settings.user_agent}) as client:
        app.state.app_config = app_config
        app.state.dispatcher = MuxDispatcher(
            app_config.mux,
            client,
            timeout=settings.delivery_timeout,
            parallel=settings.parallel_dispatch,
        )
        logger.info("application_starting", version=__version__, parallel=settings.parallel_dispatch)
        yield
    logger.info("application_shutting_down")


app = FastAPI(
    title="Slack Webhook Multiplexer",
    description="Fans inbound Slack-style webhooks out to multiple destinations",
    version=__version__,
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
)


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException) -> Response:
    """Answer request-level failures with a bare status code."""
    logger.info(
        "request_rejected",
        status_code=exc.status_code,
        reason=exc.message,
    )
    return Response(status_code=exc.status_code)


app.include_router(inbound.router)


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
    }
