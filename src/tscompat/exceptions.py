"""Exception types for typesense-compat.

Provides typed exceptions for:
  - Version parsing and feature gating (pre-flight, no network call made)
  - Protocol selection
  - Remote operations against the Typesense server
"""

from __future__ import annotations


class CompatError(Exception):
    """Base exception for all typesense-compat errors."""


class ConfigurationError(CompatError):
    """Raised when client or engine configuration is invalid."""


# ── Version / feature errors ─────────────────────────────────────────────────


class VersionParseError(CompatError, ValueError):
    """Raised when a server version string cannot be parsed."""

    def __init__(self, raw: str, reason: str = "invalid version format") -> None:
        self.raw = raw
        self.reason = reason
        super().__init__(f"{reason}: {raw!r}")


class UnsupportedFeatureError(CompatError):
    """Raised when a known server version does not satisfy a feature's bounds.

    Never retried. The message names the required minimum and the detected
    version so the user can act on it.
    """

    def __init__(self, feature: str, resource: str, required: str, detected: str) -> None:
        self.feature = feature
        self.resource = resource
        self.required = required
        self.detected = detected
        super().__init__(
            f"The {resource} resource requires Typesense {required}. "
            f"Your server is running v{detected}. "
            "Please upgrade your Typesense server or stop managing this resource."
        )


class ProtocolSelectionError(CompatError):
    """Raised when no wire protocol variant is supported by the detected version."""

    def __init__(self, family: str, detected: str, detail: str = "") -> None:
        self.family = family
        self.detected = detected
        message = f"Your Typesense server (v{detected}) does not support any known {family} API."
        if detail:
            message += f" {detail}"
        super().__init__(message)


# ── Remote operation errors ──────────────────────────────────────────────────


class RemoteOperationError(CompatError):
    """Raised when a network or server failure occurs during a remote call.

    Carries the operation context (collection / item id) so failures can be
    correlated with server-side logs.
    """

    def __init__(
        self,
        operation: str,
        detail: str,
        *,
        collection: str | None = None,
        item_id: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.operation = operation
        self.detail = detail
        self.collection = collection
        self.item_id = item_id
        self.status_code = status_code

        context = []
        if collection is not None:
            context.append(f"collection={collection}")
        if item_id is not None:
            context.append(f"item_id={item_id}")
        if status_code is not None:
            context.append(f"status={status_code}")

        message = f"Failed to {operation}: {detail}"
        if context:
            message += f" ({', '.join(context)})"
        super().__init__(message)


class VersionDetectionError(RemoteOperationError):
    """Raised when the server's self-reported version cannot be retrieved."""


class OperationCancelledError(CompatError):
    """Raised when an operation deadline expires before it completes.

    External task cancellation is not converted: ``asyncio.CancelledError``
    always propagates unchanged.
    """

    def __init__(self, operation: str, *, collection: str | None = None, item_id: str | None = None) -> None:
        self.operation = operation
        self.collection = collection
        self.item_id = item_id
        target = collection or ""
        if item_id is not None:
            target = f"{target}/{item_id}"
        super().__init__(f"Operation '{operation}' cancelled: deadline exceeded ({target})")
