"""Override / curation models.

Per-collection overrides (v29 and earlier) and the curation items of v30+
curation sets carry the same fields and are normalized to ``Override``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from tscompat.models.item import SetItem


class OverrideRule(BaseModel):
    """Defines when an override applies."""

    query: str | None = Field(default=None, description="Query that triggers the override")
    match: str | None = Field(default=None, description="Match type: exact or contains")
    tags: list[str] | None = Field(default=None, description="Tags that trigger the override")


class OverrideInclude(BaseModel):
    """A document pinned at a fixed position."""

    id: str = Field(description="Document ID")
    position: int = Field(description="1-based position in the results")


class OverrideExclude(BaseModel):
    """A document removed from the results."""

    id: str = Field(description="Document ID")


class Override(SetItem):
    """A single curation rule."""

    id: str = Field(description="Override ID, unique within its collection / set")
    rule: OverrideRule = Field(default_factory=OverrideRule, description="Trigger rule")
    includes: list[OverrideInclude] | None = Field(default=None, description="Pinned documents")
    excludes: list[OverrideExclude] | None = Field(default=None, description="Hidden documents")
    filter_by: str | None = Field(default=None, description="Filter applied when the rule matches")
    sort_by: str | None = Field(default=None, description="Sort applied when the rule matches")
    replace_query: str | None = Field(default=None, description="Replacement query")
    remove_matched_tokens: bool | None = Field(default=None, description="Drop matched tokens from the query")
    filter_curated_hits: bool | None = Field(default=None, description="Apply filters to curated hits")
    effective_from_ts: int | None = Field(default=None, description="Start of validity (UNIX seconds)")
    effective_to_ts: int | None = Field(default=None, description="End of validity (UNIX seconds)")
    stop_processing: bool | None = Field(default=None, description="Stop evaluating further rules")
    metadata: dict[str, Any] | None = Field(default=None, description="Arbitrary metadata returned on match")


class CurationSet(BaseModel):
    """A v30+ named curation set, replaced as a whole on the server."""

    name: str = Field(description="Curation set name (the collection name)")
    curations: list[Override] = Field(default_factory=list, description="Curation rules in the set")
