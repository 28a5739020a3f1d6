"""Analytics rules in the flat (v30+) shape.

Before v30 the server nests the watched collection and the destination
inside ``params``::

    {"type": "popular_queries",
     "params": {"source": {"collections": ["products"]},
                "destination": {"collection": "product_queries"},
                "limit": 1000}}

From v30 the collection is a top-level field and the destination is flat::

    {"type": "popular_queries", "collection": "products", "event_type": "search",
     "params": {"destination_collection": "product_queries", "limit": 1000}}

``AnalyticsRule`` always holds the flat shape; nested payloads are folded
into it on validation.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator

# Keys of the nested ``source`` block carried as flat params
_SOURCE_PARAMS = ("events",)


def _infer_event_type(rule_type: str | None, events: Any) -> str:
    """The server does not echo ``event_type``; derive it from the rule type."""
    if rule_type == "counter":
        if isinstance(events, list) and events and isinstance(events[0], dict) and events[0].get("type"):
            return str(events[0]["type"])
        return "click"
    return "search"


class AnalyticsRule(BaseModel):
    """An analytics rule (v28+)."""

    name: str = Field(description="Rule name")
    type: str = Field(description="Rule type, e.g. popular_queries, nohits_queries, counter")
    collection: str = Field(default="", description="Collection whose events feed the rule")
    event_type: str = Field(default="", description="Event type the rule aggregates")
    params: dict[str, Any] = Field(default_factory=dict, description="Flat rule parameters")

    @model_validator(mode="before")
    @classmethod
    def _flatten(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        params = dict(data.get("params") or {})
        source = params.pop("source", None)
        destination = params.pop("destination", None)

        if isinstance(source, dict):
            collections = source.get("collections") or []
            if not data.get("collection") and collections:
                data["collection"] = collections[0]
            for key in _SOURCE_PARAMS:
                if key in source:
                    params.setdefault(key, source[key])
        if isinstance(destination, dict):
            if "collection" in destination:
                params.setdefault("destination_collection", destination["collection"])
            if "counter_field" in destination:
                params.setdefault("counter_field", destination["counter_field"])

        if not data.get("event_type"):
            data["event_type"] = _infer_event_type(data.get("type"), params.get("events"))
        data["params"] = params
        return data

    def modern_body(self) -> dict[str, Any]:
        """Request body for v30+ servers."""
        return {
            "type": self.type,
            "collection": self.collection,
            "event_type": self.event_type,
            "params": dict(self.params),
        }

    def legacy_body(self) -> dict[str, Any]:
        """Request body for servers before v30."""
        source: dict[str, Any] = {"collections": [self.collection]}
        destination: dict[str, Any] = {}
        params: dict[str, Any] = {}
        for key, value in self.params.items():
            if key == "destination_collection":
                destination["collection"] = value
            elif key == "counter_field":
                destination["counter_field"] = value
            elif key in _SOURCE_PARAMS:
                source[key] = value
            else:
                params[key] = value
        return {
            "type": self.type,
            "event_type": self.event_type,
            "params": {"source": source, "destination": destination, **params},
        }
