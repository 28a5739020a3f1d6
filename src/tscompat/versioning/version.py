"""Typesense server version parsing and ordering.

Typesense uses semver-like but non-standard release identifiers::

    29.0        release
    30.0.1      release with patch
    30.0.rc38   release candidate of 30.0 (sorts before 30.0)

A version is parsed once, at detection time, and is immutable afterwards.
An unknown version is represented by ``None``, never by ``0.0``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from tscompat.exceptions import VersionParseError

_VERSION_RE = re.compile(r"([0-9]+)\.([0-9]+)(?:\.([0-9]+|[a-zA-Z]+[0-9]*))?")
_TRAILING_DIGITS_RE = re.compile(r"[0-9]*\Z")


def _prerelease_key(tag: str) -> tuple[str, int]:
    """Split a pre-release tag into (alpha prefix, trailing number).

    ``"rc38"`` -> ``("rc", 38)``; ``"beta"`` -> ``("beta", 0)``.
    """
    digits = _TRAILING_DIGITS_RE.search(tag)
    suffix = digits.group(0) if digits else ""
    prefix = tag[: len(tag) - len(suffix)]
    return prefix, int(suffix) if suffix else 0


@dataclass(frozen=True, eq=False)
class ServerVersion:
    """Parsed, comparable Typesense release identifier.

    A release has ``patch`` set and ``prerelease`` empty; a release candidate
    has ``prerelease`` set and ``patch`` left at 0. Equality and hashing
    follow :func:`compare_versions`, so ``30.0`` equals ``30.0.0``.

    Attributes:
        major: Major version.
        minor: Minor version.
        patch: Patch number (0 when absent or when a pre-release tag is set).
        prerelease: Pre-release tag such as ``"rc38"``, or ``None``.
        raw: The original string, preserved verbatim for display.
    """

    major: int
    minor: int
    patch: int = 0
    prerelease: str | None = None
    raw: str = field(default="")

    def __post_init__(self) -> None:
        if not self.raw:
            third = self.prerelease if self.prerelease else (str(self.patch) if self.patch else None)
            raw = f"{self.major}.{self.minor}" + (f".{third}" if third is not None else "")
            object.__setattr__(self, "raw", raw)

    def __str__(self) -> str:
        return self.raw

    def compare(self, other: ServerVersion | None) -> int:
        """Return -1, 0 or 1 as this version is less than, equal to, or greater than ``other``."""
        return compare_versions(self, other)

    def at_least(self, other: ServerVersion | None) -> bool:
        return self.compare(other) >= 0

    def less_than(self, other: ServerVersion | None) -> bool:
        return self.compare(other) < 0

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ServerVersion):
            return NotImplemented
        return self.compare(other) == 0

    def __hash__(self) -> int:
        tag = _prerelease_key(self.prerelease) if self.prerelease else None
        return hash((self.major, self.minor, self.patch, tag))

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, ServerVersion):
            return NotImplemented
        return self.compare(other) < 0

    def __le__(self, other: Any) -> bool:
        if not isinstance(other, ServerVersion):
            return NotImplemented
        return self.compare(other) <= 0

    def __gt__(self, other: Any) -> bool:
        if not isinstance(other, ServerVersion):
            return NotImplemented
        return self.compare(other) > 0

    def __ge__(self, other: Any) -> bool:
        if not isinstance(other, ServerVersion):
            return NotImplemented
        return self.compare(other) >= 0


def parse_version(raw: str) -> ServerVersion:
    """Parse a Typesense version string.

    Accepts ``MAJOR.MINOR``, ``MAJOR.MINOR.PATCH`` and
    ``MAJOR.MINOR.PRERELEASE``. No prefix or suffix is tolerated: ``"v29.0"``
    is invalid input, not silently stripped.

    Args:
        raw: Version string as reported by the server.

    Returns:
        The parsed ``ServerVersion``.

    Raises:
        VersionParseError: If the string is empty or malformed.
    """
    if not raw:
        raise VersionParseError(raw, "empty version string")

    match = _VERSION_RE.fullmatch(raw)
    if match is None:
        raise VersionParseError(raw)

    major, minor, third = match.groups()
    patch = 0
    prerelease = None
    if third is not None:
        if third.isdigit():
            patch = int(third)
        else:
            prerelease = third

    return ServerVersion(
        major=int(major),
        minor=int(minor),
        patch=patch,
        prerelease=prerelease,
        raw=raw,
    )


def must_parse(raw: str) -> ServerVersion:
    """Parse a version literal that is known at import time.

    Only for static data such as the capability matrix. A failure here is a
    programming error, not a runtime condition.
    """
    try:
        return parse_version(raw)
    except VersionParseError as e:
        raise RuntimeError(f"Invalid version literal {raw!r}: {e}") from e


def compare_versions(a: ServerVersion | None, b: ServerVersion | None) -> int:
    """Total order over versions, with ``None`` (unknown) sorting first.

    ``(major, minor, patch)`` compare first. On a tie a pre-release sorts
    before the release; two pre-release tags compare by alphabetic prefix,
    then numerically by trailing digits (``rc2 < rc10``).
    """
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1

    left = (a.major, a.minor, a.patch)
    right = (b.major, b.minor, b.patch)
    if left != right:
        return -1 if left < right else 1

    if a.prerelease and not b.prerelease:
        return -1
    if b.prerelease and not a.prerelease:
        return 1
    if not a.prerelease or not b.prerelease:
        return 0

    a_key = _prerelease_key(a.prerelease)
    b_key = _prerelease_key(b.prerelease)
    if a_key == b_key:
        return 0
    return -1 if a_key < b_key else 1


# Well-known version boundaries
V26_0 = must_parse("26.0")
V27_0 = must_parse("27.0")
V28_0 = must_parse("28.0")
V29_0 = must_parse("29.0")
V30_0 = must_parse("30.0")
