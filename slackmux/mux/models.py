"""Pydantic models for the mux configuration file."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class MuxDirective(BaseModel):
    """One fan-out rule: a destination plus an optional payload override."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    dest: str
    override: Optional[dict[str, Any]] = None


class SourceEndpoint(BaseModel):
    """Named inbound webhook route with its token name and fan-out list."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    token: Optional[str] = None
    mux_to: tuple[MuxDirective, ...] = Field(default=(), alias="muxTo")


class MuxConfig(BaseModel):
    """Endpoints, tokens and destinations. Read-only once loaded."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source_endpoints: dict[str, SourceEndpoint] = Field(default_factory=dict, alias="sourceEndpoints")
    source_tokens: dict[str, str] = Field(default_factory=dict, alias="sourceTokens")
    destinations: dict[str, str] = Field(default_factory=dict)

    def unresolved_destinations(self) -> list[tuple[str, str]]:
        """List (endpoint, destination) pairs whose destination is not configured.

        Returns:
            Pairs in endpoint and directive order
        """
        return [
            (name, directive.dest)
            for name, endpoint in self.source_endpoints.items()
            for directive in endpoint.mux_to
            if not self.destinations.get(directive.dest)
        ]

    def unresolved_tokens(self) -> list[tuple[str, str]]:
        """List (endpoint, token name) pairs missing from the token table.

        Such endpoints reject every request with 403.
        """
        return [
            (name, endpoint.token)
            for name, endpoint in self.source_endpoints.items()
            if endpoint.token and endpoint.token not in self.source_tokens
        ]


class AppConfig(BaseModel):
    """Top-level configuration file: the mux section plus listener defaults."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    mux: MuxConfig
    unix_socket: Optional[str] = Field(default=None, alias="unixSocket")
    interface: Optional[str] = None
    port: Optional[int] = None
