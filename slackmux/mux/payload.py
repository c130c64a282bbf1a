"""Outbound payload construction."""

from typing import Any

from slackmux.mux.models import MuxDirective


def build_payload(body: dict[str, Any], directive: MuxDirective) -> dict[str, Any]:
    """Derive the payload sent to a directive's destination.

    Without an override the inbound body is forwarded as is. Otherwise the
    override's keys are merged over the body, one level deep.
    """
    if directive.override is None:
        return body
    return {**body, **directive.override}
