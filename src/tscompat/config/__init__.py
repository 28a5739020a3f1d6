"""Configuration loading."""

from tscompat.config.settings import ConcurrencySettings, MutationSettings, ObservabilitySettings, Settings

__all__ = ["ConcurrencySettings", "MutationSettings", "ObservabilitySettings", "Settings"]
