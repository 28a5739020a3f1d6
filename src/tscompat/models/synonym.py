"""Synonym models — one in-memory representation for both wire protocols.

Legacy servers address a synonym as ``/collections/{collection}/synonyms/{id}``;
v30+ servers store it as an item of the synonym set named after the
collection. Both are normalized to ``Synonym``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from tscompat.models.item import SetItem


class Synonym(SetItem):
    """A single synonym rule."""

    id: str = Field(description="Synonym rule ID, unique within its collection / set")
    root: str | None = Field(default=None, description="Root word for one-way synonyms")
    synonyms: list[str] = Field(default_factory=list, description="Equivalent words")


class SynonymSet(BaseModel):
    """A v30+ named synonym set, replaced as a whole on the server."""

    name: str = Field(description="Synonym set name (the collection name)")
    items: list[Synonym] = Field(default_factory=list, description="Synonym rules in the set")
