"""tscompat — version-aware compatibility layer for the Typesense Server API."""

__version__ = "0.1.0"
