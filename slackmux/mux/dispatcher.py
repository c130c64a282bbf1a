"""Fan-out of one inbound notification to its destinations."""

import asyncio
import errno
import json
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from slackmux.core.exceptions import DeliveryException, DestinationNotConfiguredException
from slackmux.core.logging import get_logger
from slackmux.mux.models import MuxConfig, MuxDirective, SourceEndpoint
from slackmux.mux.payload import build_payload

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of one delivery attempt."""

    destination: str
    error: Optional[DeliveryException] = None

    @property
    def ok(self) -> bool:
        """Whether the destination answered 200."""
        return self.error is None


@dataclass
class DispatchResult:
    """Outcomes of all deliveries for one request, in configuration order."""

    outcomes: list[DeliveryOutcome] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        """Number of failed deliveries."""
        return sum(1 for outcome in self.outcomes if not outcome.ok)

    @property
    def error_map(self) -> dict[str, str]:
        """Failed destination name -> description. Successes are omitted."""
        return {
            outcome.destination: outcome.error.description
            for outcome in self.outcomes
            if outcome.error is not None
        }


def _error_code(exc: BaseException) -> str:
    """Find a transport error code on an exception or its causes.

    Returns:
        Symbolic errno name (``ECONNREFUSED``) or the ``code`` attribute,
        empty string when no exception in the chain carries one
    """
    seen: set[int] = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        number = getattr(current, "errno", None)
        if isinstance(number, int):
            return errno.errorcode.get(number, str(number))
        code = getattr(current, "code", None)
        if isinstance(code, (str, int)) and not isinstance(code, bool):
            return str(code)
        current = current.__cause__ or current.__context__
    return ""


class MuxDispatcher:
    """Delivers an endpoint's payloads to every destination it lists."""

    def __init__(
        self,
        mux: MuxConfig,
        client: httpx.AsyncClient,
        timeout: Optional[float] = None,
        parallel: bool = False,
    ) -> None:
        """Initialize dispatcher.

        Args:
            mux: Mux configuration (destinations are resolved against it)
            client: Shared HTTP client used for every delivery
            timeout: Per-delivery timeout in seconds (default: client default)
            parallel: Deliver to all destinations concurrently instead of one by one
        """
        self.mux = mux
        self.client = client
        self.timeout = timeout
        self.parallel = parallel

    def resolve_destination(self, directive: MuxDirective) -> str:
        """Get the URL for a directive's destination.

        Raises:
            DestinationNotConfiguredException: If the destination is unknown
        """
        url = self.mux.destinations.get(directive.dest)
        if not url:
            logger.error("destination_not_configured", destination=directive.dest)
            raise DestinationNotConfiguredException(directive.dest)
        return url

    async def dispatch(
        self,
        endpoint_name: str,
        endpoint: SourceEndpoint,
        body: dict[str, Any],
    ) -> DispatchResult:
        """Deliver the body to every directive of an endpoint.

        A directive with an unknown destination aborts the request; deliveries
        already made are not retracted and later directives are not attempted.
        Delivery failures are collected and never abort sibling deliveries.

        Args:
            endpoint_name: Endpoint name (for logging)
            endpoint: Validated endpoint
            body: Effective inbound body

        Returns:
            Collected outcomes

        Raises:
            DestinationNotConfiguredException: On the first unknown destination
        """
        logger.info(
            "processing_request",
            endpoint=endpoint_name,
            destinations=len(endpoint.mux_to),
            parallel=self.parallel,
        )

        if self.parallel:
            return await self._dispatch_concurrently(endpoint, body)

        result = DispatchResult()
        for directive in endpoint.mux_to:
            url = self.resolve_destination(directive)
            payload = build_payload(body, directive)
            result.outcomes.append(await self.deliver(directive.dest, url, payload))
        return result

    async def _dispatch_concurrently(
        self,
        endpoint: SourceEndpoint,
        body: dict[str, Any],
    ) -> DispatchResult:
        """Deliver all directives at once, joined before aggregation."""
        pending: list[Awaitable[DeliveryOutcome]] = []
        config_error: Optional[DestinationNotConfiguredException] = None

        for directive in endpoint.mux_to:
            try:
                url = self.resolve_destination(directive)
            except DestinationNotConfiguredException as e:
                config_error = e
                break
            pending.append(self.deliver(directive.dest, url, build_payload(body, directive)))

        outcomes = await asyncio.gather(*pending)
        if config_error is not None:
            raise config_error
        return DispatchResult(outcomes=list(outcomes))

    async def deliver(self, destination: str, url: str, payload: dict[str, Any]) -> DeliveryOutcome:
        """POST a JSON payload to one destination.

        Only a 200 response counts as success. Other statuses and transport
        failures are captured as the outcome's error.

        Args:
            destination: Destination name
            url: Destination URL
            payload: Outbound payload

        Returns:
            Delivery outcome
        """
        logger.debug(
            "notifying_destination",
            destination=destination,
            payload=json.dumps(payload, default=str),
        )

        request_kwargs: dict[str, Any] = {"json": payload}
        if self.timeout is not None:
            request_kwargs["timeout"] = self.timeout

        try:
            response = await self.client.post(url, **request_kwargs)
        except httpx.HTTPError as e:
            error = DeliveryException(destination, str(e), code=_error_code(e))
            logger.warning(
                "destination_request_failed",
                destination=destination,
                error_type=type(e).__name__,
                error=str(e),
                code=error.code,
            )
            return DeliveryOutcome(destination, error)
        except Exception as e:
            error = DeliveryException(destination, str(e), code=_error_code(e))
            logger.error(
                "destination_request_failed",
                destination=destination,
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            return DeliveryOutcome(destination, error)

        if response.status_code == 200:
            logger.info("destination_notified", destination=destination)
            return DeliveryOutcome(destination)

        logger.warning(
            "destination_rejected",
            destination=destination,
            status_code=response.status_code,
            response_body=response.text[:1000],
        )
        return DeliveryOutcome(
            destination,
            DeliveryException(destination, response.text, status_code=response.status_code),
        )
