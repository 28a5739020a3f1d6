"""Base model for items stored inside a shared set."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SetItem(BaseModel):
    """An item addressable by ID within its set."""

    id: str = Field(description="Item ID, unique within its set")
