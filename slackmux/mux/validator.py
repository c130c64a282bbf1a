"""Inbound request validation: body extraction, endpoint lookup and token check."""

import hmac
import json
from dataclasses import dataclass
from typing import Any, Optional

from slackmux.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from slackmux.core.logging import get_logger
from slackmux.mux.models import MuxConfig, SourceEndpoint

logger = get_logger(__name__)

# Slack posts form-encoded notifications with the JSON document in this field.
PAYLOAD_FIELD = "payload"


@dataclass(frozen=True)
class ValidatedRequest:
    """An inbound request that passed validation."""

    endpoint_name: str
    endpoint: SourceEndpoint
    body: dict[str, Any]


def extract_body(raw: Any) -> dict[str, Any]:
    """Get the effective body of an inbound notification.

    Args:
        raw: Parsed request body (JSON document or form fields), None if absent

    Returns:
        The JSON object nested in the ``payload`` field, or the body itself

    Raises:
        BadRequestException: If the body is absent, not an object, or
            ``payload`` does not hold a JSON string
    """
    body = raw
    if isinstance(raw, dict) and PAYLOAD_FIELD in raw:
        encoded = raw[PAYLOAD_FIELD]
        if not isinstance(encoded, str):
            logger.debug("bogus_body", reason="payload_not_a_string")
            raise BadRequestException("payload field must be a JSON string")
        try:
            body = json.loads(encoded)
        except json.JSONDecodeError as e:
            logger.debug("bogus_body", reason="payload_not_json", error=str(e))
            raise BadRequestException("payload field is not valid JSON") from e

    if not isinstance(body, dict):
        logger.debug("bogus_body", reason="not_an_object", body_type=type(body).__name__)
        raise BadRequestException("body must be a JSON object")

    return body


def resolve_endpoint(mux: MuxConfig, name: str) -> SourceEndpoint:
    """Look up an endpoint by name.

    Raises:
        NotFoundException: If no such endpoint is configured
    """
    endpoint = mux.source_endpoints.get(name)
    if endpoint is None:
        logger.debug("endpoint_not_found", endpoint=name)
        raise NotFoundException(details={"endpoint": name})
    return endpoint


def authorize(mux: MuxConfig, endpoint: SourceEndpoint, token: Optional[str]) -> None:
    """Check the path token against the endpoint's configured token.

    The endpoint stores a token *name*; its secret is looked up in the token
    table before comparing. Endpoints without a token accept any request.

    Raises:
        ForbiddenException: If a token is required and missing or mismatched
    """
    if not endpoint.token:
        return

    expected = mux.source_tokens.get(endpoint.token)
    if token is None or expected is None or not hmac.compare_digest(
        expected.encode("utf-8"), token.encode("utf-8")
    ):
        logger.debug("token_mismatch", token_name=endpoint.token, token_supplied=token is not None)
        raise ForbiddenException()


def validate_request(
    mux: MuxConfig,
    endpoint_name: str,
    token: Optional[str],
    raw_body: Any,
) -> ValidatedRequest:
    """Validate an inbound request.

    Checks run in order: body (400), endpoint (404), token (403).

    Args:
        mux: Mux configuration
        endpoint_name: ``endpoint`` path parameter
        token: ``token`` path parameter, None when absent
        raw_body: Parsed request body

    Returns:
        Validated request
    """
    body = extract_body(raw_body)
    endpoint = resolve_endpoint(mux, endpoint_name)
    authorize(mux, endpoint, token)
    return ValidatedRequest(endpoint_name=endpoint_name, endpoint=endpoint, body=body)
