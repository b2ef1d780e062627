"""Configuration module for limitd-shard."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
