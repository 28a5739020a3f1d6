"""Server adapter layer — connectors for the Typesense Server API.

Built-in adapters:
  - typesense: HTTP client for every endpoint family, plus the v30+
    synonym-set and curation-set backends

Implement ``SharedSetBackend`` to put another coarse-grained set behind
the shared-set mutator.
"""
