"""Capability matrix and feature checkers.

Different Typesense versions expose different API endpoints:
  - v29 and earlier: ``/collections/{name}/synonyms/{id}`` and
    ``/collections/{name}/overrides/{id}`` (per-collection sub-resources)
  - v30+: ``/synonym_sets`` and ``/curation_sets`` (system-level named sets)

The matrix records an inclusive minimum and an exclusive maximum per
feature, independently, so both "introduced in X" and "removed in Y" can be
expressed.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from tscompat.exceptions import UnsupportedFeatureError
from tscompat.versioning.version import V26_0, V27_0, V28_0, V29_0, V30_0, ServerVersion

logger = logging.getLogger(__name__)


class Feature(str, Enum):
    """Version-dependent Typesense capabilities."""

    SYNONYM_SETS = "synonym_sets"
    SYNONYM_SET_ITEMS = "synonym_set_items"
    CURATION_SETS = "curation_sets"
    PER_COLLECTION_SYNONYMS = "per_collection_synonyms"
    PER_COLLECTION_OVERRIDES = "per_collection_overrides"
    CONVERSATION_MODELS = "conversation_models"
    PRESETS = "presets"
    STOPWORDS = "stopwords"
    ANALYTICS_RULES = "analytics_rules"
    FLAT_ANALYTICS_RULES = "flat_analytics_rules"
    NL_SEARCH_MODELS = "nl_search_models"
    STEMMING_DICTIONARIES = "stemming_dictionaries"


@dataclass(frozen=True)
class FeatureBounds:
    """Version window of a feature: ``[minimum, maximum)``.

    ``minimum=None`` means available since before versioning existed;
    ``maximum=None`` means not removed.
    """

    minimum: ServerVersion | None = None
    maximum: ServerVersion | None = None

    def __post_init__(self) -> None:
        if self.minimum is not None and self.maximum is not None and not self.minimum < self.maximum:
            raise ValueError(f"Feature bounds must satisfy minimum < maximum, got [{self.minimum}, {self.maximum})")

    def contains(self, version: ServerVersion) -> bool:
        if self.minimum is not None and version.less_than(self.minimum):
            return False
        return not (self.maximum is not None and version.at_least(self.maximum))


CAPABILITY_MATRIX: dict[Feature, FeatureBounds] = {
    Feature.SYNONYM_SETS: FeatureBounds(minimum=V30_0),
    Feature.SYNONYM_SET_ITEMS: FeatureBounds(minimum=V30_0),
    Feature.CURATION_SETS: FeatureBounds(minimum=V30_0),
    # Removed in v30
    Feature.PER_COLLECTION_SYNONYMS: FeatureBounds(maximum=V30_0),
    Feature.PER_COLLECTION_OVERRIDES: FeatureBounds(maximum=V30_0),
    Feature.CONVERSATION_MODELS: FeatureBounds(minimum=V26_0),
    Feature.PRESETS: FeatureBounds(minimum=V27_0),
    Feature.STOPWORDS: FeatureBounds(minimum=V27_0),
    Feature.ANALYTICS_RULES: FeatureBounds(minimum=V28_0),
    # Top-level collection and flat params replace params.source/destination
    Feature.FLAT_ANALYTICS_RULES: FeatureBounds(minimum=V30_0),
    Feature.NL_SEARCH_MODELS: FeatureBounds(minimum=V29_0),
    Feature.STEMMING_DICTIONARIES: FeatureBounds(minimum=V29_0),
}


def feature_min_version_string(feature: Feature) -> str:
    """Human-readable minimum version for a feature, e.g. ``"v27.0+"``."""
    bounds = CAPABILITY_MATRIX.get(feature)
    if bounds is None or bounds.minimum is None:
        return "unknown version"
    return f"v{bounds.minimum.major}.{bounds.minimum.minor}+"


class FeatureChecker(ABC):
    """Capability query surface shared read-only by every operation.

    Callers never type-switch on the concrete checker: both variants answer
    ``supports()`` and ``version``.
    """

    @abstractmethod
    def supports(self, feature: Feature) -> bool:
        """Return True if the server is known to support ``feature``."""

    @property
    @abstractmethod
    def version(self) -> ServerVersion | None:
        """The detected server version, or ``None`` if unknown."""


class PreciseFeatureChecker(FeatureChecker):
    """Feature checker bound to a successfully detected server version."""

    def __init__(self, version: ServerVersion) -> None:
        self._version = version

    def supports(self, feature: Feature) -> bool:
        bounds = CAPABILITY_MATRIX.get(feature)
        if bounds is None:
            return False
        return bounds.contains(self._version)

    @property
    def version(self) -> ServerVersion:
        return self._version

    def __repr__(self) -> str:
        return f"PreciseFeatureChecker(version={self._version.raw!r})"


class FallbackFeatureChecker(FeatureChecker):
    """Feature checker used when version detection failed.

    Never claims a capability it cannot verify: assuming either "modern" or
    "legacy" could corrupt server state, so ``supports()`` is always False.
    """

    def supports(self, feature: Feature) -> bool:
        return False

    @property
    def version(self) -> None:
        return None

    def __repr__(self) -> str:
        return "FallbackFeatureChecker()"


def require_feature(checker: FeatureChecker, feature: Feature, resource: str) -> None:
    """Pre-flight guard for purely additive features.

    When the version is unknown the check is skipped so the underlying call
    can fail naturally against the real endpoint.

    Args:
        checker: The session's feature checker.
        feature: The feature the operation needs.
        resource: Resource name used in the error message.

    Raises:
        UnsupportedFeatureError: If the known version does not support ``feature``.
    """
    detected = checker.version
    if detected is None:
        logger.debug("Server version unknown; skipping %s check for %s", feature.value, resource)
        return

    if not checker.supports(feature):
        raise UnsupportedFeatureError(
            feature=feature.value,
            resource=resource,
            required=feature_min_version_string(feature),
            detected=detected.raw,
        )
