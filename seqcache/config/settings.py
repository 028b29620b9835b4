"""
seqcache Configuration Settings

Default values for cache construction, snapshot loading and logging.
Every field can be overridden through a SEQCACHE_* environment variable.
"""

import os
from dataclasses import dataclass
from typing import Optional


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() == "true"


@dataclass
class Settings:
    """Cache configuration settings."""

    # Cache settings
    CAPACITY: int = int(os.environ.get("SEQCACHE_CAPACITY", "1000"))
    POLICY: str = os.environ.get("SEQCACHE_POLICY", "lru")

    # Snapshot settings
    PERSIST_PATH: Optional[str] = os.environ.get("SEQCACHE_PERSIST_PATH") or None
    STRICT_LOAD: bool = _env_flag("SEQCACHE_STRICT_LOAD", "true")
    TRIM_ON_LOAD: bool = _env_flag("SEQCACHE_TRIM_ON_LOAD", "false")
    ENCODING: str = "utf-8"

    # Logging settings
    DEBUG: bool = _env_flag("SEQCACHE_DEBUG", "false")
    LOG_LEVEL: str = os.environ.get("SEQCACHE_LOG_LEVEL", "WARNING")


# Global settings instance
settings = Settings()
