"""Single-protocol resources gated only by a minimum server version."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class Preset(BaseModel):
    """A named search preset (v27+)."""

    name: str = Field(description="Preset name")
    value: dict[str, Any] = Field(default_factory=dict, description="Search parameters stored in the preset")


class StopwordsSet(BaseModel):
    """A named stopwords set (v27+)."""

    id: str = Field(description="Stopwords set ID")
    stopwords: list[str] = Field(default_factory=list, description="Words ignored at query time")
    locale: str | None = Field(default=None, description="Locale of the stopwords")
