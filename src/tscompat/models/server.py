"""Server info model — the Typesense ``/debug`` payload."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ServerInfo(BaseModel):
    """Version and state information reported by the server."""

    version: str = Field(default="", description="Self-reported server version, e.g. '30.0'")
    state: int = Field(default=0, description="Server state (1 = ready)")
