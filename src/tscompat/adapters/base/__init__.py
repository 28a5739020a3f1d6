"""Base backend interface — abstract classes for coarse-grained remote sets."""

from tscompat.adapters.base.backend import SharedSetBackend

__all__ = ["SharedSetBackend"]
