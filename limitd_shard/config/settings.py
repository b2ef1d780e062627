"""
limitd-shard Configuration Settings

Default values for the sharding layer. Every value can be overridden
through the environment, or per client through ShardClient keywords.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Shard client configuration settings."""

    # Node addressing
    SCHEME: str = "limitd"
    DEFAULT_PORT: int = int(os.environ.get("LIMITD_SHARD_PORT", "9231"))

    # Autodiscovery
    DEFAULT_RECORD_TYPE: str = "A"
    REFRESH_INTERVAL: float = float(os.environ.get("LIMITD_SHARD_REFRESH_INTERVAL", "300"))  # 5 minutes
    DNS_TIMEOUT: float = float(os.environ.get("LIMITD_SHARD_DNS_TIMEOUT", "5.0"))

    # Connections
    DISCONNECT_TIMEOUT: float = float(os.environ.get("LIMITD_SHARD_DISCONNECT_TIMEOUT", "5.0"))

    # Logging settings
    DEBUG: bool = os.environ.get("LIMITD_SHARD_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("LIMITD_SHARD_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
