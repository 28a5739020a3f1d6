"""Typesense server adapter: HTTP client and v30+ named-set backends."""

from tscompat.adapters.typesense.client import TypesenseServerClient
from tscompat.adapters.typesense.sets import CurationSetBackend, SynonymSetBackend

__all__ = ["CurationSetBackend", "SynonymSetBackend", "TypesenseServerClient"]
