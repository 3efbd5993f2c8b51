"""
Centralized configuration for rulesync.

Uses Pydantic BaseSettings for environment variable integration
and validation. Operator-wide knobs live here; per-VMAlert knobs
(enforced namespace label, deduplication, select-all) are read from
the VMAlert resource itself.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (RULESYNC_*)
3. .env file
4. Default values

Example:
    from rulesync.config import get_config

    config = get_config()
    print(config.max_configmap_data_size)

    # Override at runtime
    config = get_config(max_configmap_data_size=4096)
"""

from __future__ import annotations

import os
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Kubernetes caps a ConfigMap at 1MiB; leave headroom for metadata.
MAX_CONFIGMAP_DATA_SIZE = 1024 * 1024 - 250 * 1000


class RuleSyncConfig(BaseSettings):
    """
    Operator-wide configuration for rule reconciliation.

    All settings can be overridden via environment variables
    prefixed with RULESYNC_.

    Example:
        export RULESYNC_MAX_CONFIGMAP_DATA_SIZE=524288
        export RULESYNC_LOG_FORMAT=text
    """

    model_config = SettingsConfigDict(
        env_prefix="RULESYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Packing
    max_configmap_data_size: int = Field(
        default=MAX_CONFIGMAP_DATA_SIZE,
        gt=0,
        description="Byte cap for the data section of one rules ConfigMap",
    )

    # Kubernetes
    watch_namespace: Optional[str] = Field(
        default=None,
        description="Restrict rule selection to a single namespace",
    )
    kubeconfig: Optional[str] = Field(
        default=None,
        description="Path to kubeconfig file (auto-detected if not set)",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for rulesync",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format (json for Loki, text for console)",
    )

    @field_validator("watch_namespace")
    @classmethod
    def empty_namespace_means_all(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty watch namespace as cluster-wide."""
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("kubeconfig")
    @classmethod
    def expand_path(cls, v: Optional[str]) -> Optional[str]:
        """Expand ~ and environment variables in paths."""
        if v is None:
            return v
        return os.path.expanduser(os.path.expandvars(v))


# Global singleton
_config: Optional[RuleSyncConfig] = None


def get_config(**overrides) -> RuleSyncConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.
    """
    global _config

    if overrides or _config is None:
        _config = RuleSyncConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
