"""Map dispatch outcomes to the HTTP response."""

from fastapi import Response, status
from fastapi.responses import JSONResponse

from slackmux.core.logging import get_logger
from slackmux.mux.dispatcher import DispatchResult

logger = get_logger(__name__)


def build_response(result: DispatchResult) -> Response:
    """Build the response for a completed dispatch.

    Returns:
        200 with an empty body when every delivery succeeded, otherwise 500
        with a JSON object of failed destination -> description
    """
    if result.error_count == 0:
        return Response(status_code=status.HTTP_200_OK)

    logger.info(
        "dispatch_partially_failed",
        failed=result.error_count,
        total=len(result.outcomes),
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=result.error_map)
