"""Logging setup."""

from tscompat.observability.logging import setup_logging

__all__ = ["setup_logging"]
