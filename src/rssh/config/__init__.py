"""Configuration and profile storage."""

from rssh.config.profiles import ConnectionProfile, ProfileStore, parse_target
from rssh.config.settings import Settings

__all__ = ["ConnectionProfile", "ProfileStore", "Settings", "parse_target"]
