"""Listener selection and server startup."""

from dataclasses import dataclass
from typing import Any, Optional

from slackmux.core.config import Settings
from slackmux.core.logging import get_logger
from slackmux.mux.models import AppConfig

logger = get_logger(__name__)

# First file descriptor passed by systemd socket activation (SD_LISTEN_FDS_START).
SYSTEMD_LISTEN_FD = 3
DEFAULT_INTERFACE = "localhost"
DEFAULT_PORT = 8080


@dataclass(frozen=True)
class ListenTarget:
    """Where the HTTP server listens. Exactly one form is set."""

    fd: Optional[int] = None
    uds: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None

    def describe(self) -> str:
        """Human readable form of the target."""
        if self.fd is not None:
            return f"fd://{self.fd}"
        if self.uds is not None:
            return f"unix://{self.uds}"
        return f"http://{self.host}:{self.port}"

    def uvicorn_kwargs(self) -> dict[str, Any]:
        """Keyword arguments selecting this target in ``uvicorn.run``."""
        if self.fd is not None:
            return {"fd": self.fd}
        if self.uds is not None:
            return {"uds": self.uds}
        return {"host": self.host, "port": self.port}


def resolve_listen_target(settings: Settings, app_config: Optional[AppConfig] = None) -> ListenTarget:
    """Pick the listener once at startup.

    Priority: systemd socket activation, then a Unix socket path, then
    interface and port. Environment settings win over the configuration file.

    Args:
        settings: Process settings
        app_config: Loaded configuration file, if any

    Returns:
        Listen target
    """
    if settings.socket_activated:
        return ListenTarget(fd=SYSTEMD_LISTEN_FD)

    socket_path = settings.unix_socket or (app_config.unix_socket if app_config else None)
    if socket_path:
        return ListenTarget(uds=socket_path)

    interface = settings.interface or (app_config.interface if app_config else None) or DEFAULT_INTERFACE
    port = settings.port or (app_config.port if app_config else None) or DEFAULT_PORT
    return ListenTarget(host=interface, port=port)


def run_server(target: ListenTarget, log_level: str = "info") -> None:
    """Serve the API on the given target until interrupted."""
    import uvicorn

    from slackmux.api.app import app

    logger.info("server_starting", listen=target.describe())
    # Access log lines carry the request path, which holds the endpoint token.
    uvicorn.run(app, log_level=log_level.lower(), access_log=False, **target.uvicorn_kwargs())
