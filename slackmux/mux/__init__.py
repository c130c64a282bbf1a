"""Request validation, payload building and fan-out dispatch."""

from slackmux.mux.dispatcher import DeliveryOutcome, DispatchResult, MuxDispatcher
from slackmux.mux.models import AppConfig, MuxConfig, MuxDirective, SourceEndpoint

__all__ = [
    "AppConfig",
    "DeliveryOutcome",
    "DispatchResult",
    "MuxConfig",
    "MuxDirective",
    "MuxDispatcher",
    "SourceEndpoint",
]
