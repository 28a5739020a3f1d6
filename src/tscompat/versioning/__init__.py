"""Version-aware feature negotiation for Typesense servers."""

from tscompat.versioning.detection import VersionDetection, detect_server_version
from tscompat.versioning.features import (
    CAPABILITY_MATRIX,
    FallbackFeatureChecker,
    Feature,
    FeatureBounds,
    FeatureChecker,
    PreciseFeatureChecker,
    feature_min_version_string,
    require_feature,
)
from tscompat.versioning.version import ServerVersion, compare_versions, must_parse, parse_version

__all__ = [
    "CAPABILITY_MATRIX",
    "FallbackFeatureChecker",
    "Feature",
    "FeatureBounds",
    "FeatureChecker",
    "PreciseFeatureChecker",
    "ServerVersion",
    "VersionDetection",
    "compare_versions",
    "detect_server_version",
    "feature_min_version_string",
    "must_parse",
    "parse_version",
    "require_feature",
]
