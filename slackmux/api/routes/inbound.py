"""Inbound webhook route."""

import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, Response

from slackmux.api.dependencies import get_dispatcher, get_mux_config
from slackmux.core.logging import bind_request_context, get_logger
from slackmux.mux.aggregator import build_response
from slackmux.mux.dispatcher import MuxDispatcher
from slackmux.mux.models import MuxConfig
from slackmux.mux.validator import validate_request

logger = get_logger(__name__)
router = APIRouter(prefix="/slackmux", tags=["slackmux"])

JSON_MEDIA_TYPE = "application/json"
FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"


async def read_body(request: Request) -> Optional[Any]:
    """Parse a JSON or form-encoded request body.

    Returns:
        Parsed body, or None when the body is empty, undecodable or of an
        unsupported content type
    """
    media_type = request.headers.get("content-type", "").split(";")[0].strip().lower()

    if media_type == JSON_MEDIA_TYPE or media_type.endswith("+json"):
        try:
            return await request.json()
        except ValueError as e:
            logger.debug("body_not_json", error=str(e))
            return None

    if media_type == FORM_MEDIA_TYPE:
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    logger.debug("unsupported_content_type", content_type=media_type or None)
    return None


async def _multiplex(
    request: Request,
    endpoint: str,
    token: Optional[str],
    mux: MuxConfig,
    dispatcher: MuxDispatcher,
) -> Response:
    bind_request_context(request_id=uuid.uuid4().hex, endpoint=endpoint)
    validated = validate_request(mux, endpoint, token, await read_body(request))
    result = await dispatcher.dispatch(validated.endpoint_name, validated.endpoint, validated.body)
    return build_response(result)


@router.post("/{endpoint}")
@router.post("/{endpoint}/")
async def multiplex(
    request: Request,
    endpoint: str,
    mux: MuxConfig = Depends(get_mux_config),
    dispatcher: MuxDispatcher = Depends(get_dispatcher),
) -> Response:
    """Fan an inbound notification out to the endpoint's destinations."""
    return await _multiplex(request, endpoint, None, mux, dispatcher)


@router.post("/{endpoint}/{token}")
async def multiplex_with_token(
    request: Request,
    endpoint: str,
    token: str,
    mux: MuxConfig = Depends(get_mux_config),
    dispatcher: MuxDispatcher = Depends(get_dispatcher),
) -> Response:
    """Fan out after checking the endpoint token given in the path."""
    return await _multiplex(request, endpoint, token, mux, dispatcher)
