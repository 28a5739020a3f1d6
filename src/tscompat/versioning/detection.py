"""Server version detection — builds the session's FeatureChecker.

Detection runs once per session. Failure is never fatal: the session falls
back to a ``FallbackFeatureChecker`` and operations use their explicit
unknown-version code paths.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tscompat.exceptions import RemoteOperationError, VersionParseError
from tscompat.versioning.features import FallbackFeatureChecker, FeatureChecker, PreciseFeatureChecker
from tscompat.versioning.version import ServerVersion, parse_version

if TYPE_CHECKING:
    from tscompat.adapters.typesense.client import TypesenseServerClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionDetection:
    """Outcome of version detection.

    Attributes:
        version: The parsed server version, or ``None`` when unknown.
        checker: Feature checker to share across the session.
        warning: Why detection fell back, or ``None`` on success.
    """

    version: ServerVersion | None
    checker: FeatureChecker
    warning: str | None = None


async def detect_server_version(client: TypesenseServerClient) -> VersionDetection:
    """Fetch the server's self-reported version and build a feature checker.

    Args:
        client: An initialized server client.

    Returns:
        A ``VersionDetection`` with a precise checker on success, or a
        fallback checker and a warning when the call failed or the version
        string could not be parsed.
    """
    try:
        info = await client.get_server_info()
    except RemoteOperationError as e:
        warning = (
            "Could not detect Typesense server version; version-specific features "
            f"will use runtime detection. Error: {e}"
        )
        logger.warning("%s", warning)
        return VersionDetection(version=None, checker=FallbackFeatureChecker(), warning=warning)

    try:
        version = parse_version(info.version)
    except VersionParseError as e:
        warning = (
            f"The server returned an unexpected version format: {info.version!r}. "
            f"Version-specific features will use runtime detection. Error: {e}"
        )
        logger.warning("%s", warning)
        return VersionDetection(version=None, checker=FallbackFeatureChecker(), warning=warning)

    logger.info("Detected Typesense server version %s", version.raw)
    return VersionDetection(version=version, checker=PreciseFeatureChecker(version))
