"""Global configuration (~/.config/rssh/config.toml)."""

from __future__ import annotations

import tomli
from dataclasses import dataclass, field
from pathlib import Path

from rssh.exceptions import ConfigError
from rssh.output import warn

HOST_KEY_POLICIES = ("auto-add", "warn", "reject")

MIN_CHUNK_SIZE = 4 * 1024
MAX_CHUNK_SIZE = 1024 * 1024

KNOWN_FIELDS = {
    "profiles_path",
    "keyring_service",
    "connect_timeout",
    "host_key_policy",
    "known_hosts",
    "chunk_size",
    "save_passwords",
}


def default_config_path() -> Path:
    return Path.home() / ".config" / "rssh" / "config.toml"


def default_profiles_path() -> Path:
    return Path.home() / ".rss_ssh" / "config.json"


@dataclass
class Settings:
    """Settings from ~/.config/rssh/config.toml."""

    profiles_path: Path = field(default_factory=default_profiles_path)
    keyring_service: str = "rssh"
    connect_timeout: float = 10.0
    host_key_policy: str = "auto-add"
    known_hosts: Path | None = None
    chunk_size: int = 32 * 1024
    save_passwords: bool = True

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from file.

        Returns defaults if the file doesn't exist.
        """
        if path is None:
            path = default_config_path()

        if not path.exists():
            return cls()

        try:
            with open(path, "rb") as f:
                data = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigError(f"{path}: {e}")

        unknown = set(data.keys()) - KNOWN_FIELDS
        if unknown:
            warn(f"config.toml: unknown fields: {', '.join(sorted(unknown))}")

        settings = cls()

        if "profiles_path" in data:
            settings.profiles_path = _path(data, "profiles_path")
        if "known_hosts" in data:
            settings.known_hosts = _path(data, "known_hosts")

        if "keyring_service" in data:
            service = data["keyring_service"]
            if not isinstance(service, str) or not service.strip():
                raise ConfigError("config.toml: keyring_service must be a non-empty string")
            settings.keyring_service = service

        if "connect_timeout" in data:
            timeout = data["connect_timeout"]
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ConfigError("config.toml: connect_timeout must be a positive number")
            settings.connect_timeout = float(timeout)

        if "host_key_policy" in data:
            policy = data["host_key_policy"]
            if policy not in HOST_KEY_POLICIES:
                raise ConfigError(
                    f"config.toml: host_key_policy must be one of {', '.join(HOST_KEY_POLICIES)}"
                )
            settings.host_key_policy = policy

        if "chunk_size" in data:
            chunk = data["chunk_size"]
            if (
                isinstance(chunk, bool)
                or not isinstance(chunk, int)
                or not MIN_CHUNK_SIZE <= chunk <= MAX_CHUNK_SIZE
            ):
                raise ConfigError(
                    f"config.toml: chunk_size must be an integer between "
                    f"{MIN_CHUNK_SIZE} and {MAX_CHUNK_SIZE}"
                )
            settings.chunk_size = chunk

        if "save_passwords" in data:
            if not isinstance(data["save_passwords"], bool):
                raise ConfigError("config.toml: save_passwords must be true or false")
            settings.save_passwords = data["save_passwords"]

        return settings


def _path(data: dict, key: str) -> Path:
    value = data[key]
    if not isinstance(value, str) or not value:
        raise ConfigError(f"config.toml: {key} must be a path string")
    return Path(value).expanduser()
