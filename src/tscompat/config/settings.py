"""Client settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. Environment variables (TYPESENSE_ prefix)
  2. YAML config file (if specified)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class ConcurrencySettings(BaseModel):
    """Concurrent operation limits."""

    max_concurrent_operations: int = Field(
        default=10, ge=1, description="Max operations run in parallel by CompatEngine.run_concurrently"
    )
    operation_timeout: float | None = Field(
        default=None, gt=0, description="Default per-operation deadline in seconds (None = no deadline)"
    )


class MutationSettings(BaseModel):
    """Shared-set mutation behavior."""

    use_item_api: bool = Field(
        default=True,
        description="Use item-level endpoints where the server has them; "
        "False forces locked read-modify-write of whole sets",
    )


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root settings.

    Configuration is loaded from environment variables with the TYPESENSE_ prefix.
    Nested settings use double underscores: TYPESENSE_CONCURRENCY__MAX_CONCURRENT_OPERATIONS=4

    Example:
        TYPESENSE_HOST=xxx.a1.typesense.net
        TYPESENSE_API_KEY=xyz
        TYPESENSE_PORT=8108
        TYPESENSE_PROTOCOL=http
    """

    model_config = {
        "env_prefix": "TYPESENSE_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "validate_assignment": True,
    }

    # Server connection
    host: str = Field(default="", description="Typesense server hostname")
    api_key: str = Field(default="", description="Typesense admin API key")
    port: int = Field(default=443, description="Typesense server port")
    protocol: str = Field(default="https", description="Connection protocol: http or https")
    request_timeout: float = Field(default=30.0, gt=0, description="HTTP request timeout in seconds")

    # Component settings
    concurrency: ConcurrencySettings = Field(default_factory=ConcurrencySettings)
    mutation: MutationSettings = Field(default_factory=MutationSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @field_validator("protocol")
    @classmethod
    def _check_protocol(cls, v: str) -> str:
        v = v.lower()
        if v not in ("http", "https"):
            raise ValueError(f"protocol must be 'http' or 'https', got {v!r}")
        return v

    @field_validator("port")
    @classmethod
    def _check_port(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {v}")
        return v

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file are used as defaults; environment variables
        still take precedence.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        # Init kwargs outrank env in pydantic-settings, so fold env values in on top.
        from_env = cls().model_dump(exclude_unset=True)
        return cls(**_merge(data, from_env))


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged
