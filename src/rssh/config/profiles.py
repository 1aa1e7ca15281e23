"""Connection profile store (~/.rss_ssh/config.json).

Format:
    {"connections": {"web": {"user": "deploy", "host": "1.2.3.4", "port": 22}}}

Entries written by older versions map the alias straight to a
``user@host`` string; those load with port 22 and are rewritten in the
current form on the next save.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from rssh.config.settings import default_profiles_path
from rssh.exceptions import AliasAlreadyExists, AliasNotFound, ConfigError, ValidationError
from rssh.output import debug

DEFAULT_PORT = 22


@dataclass(frozen=True)
class ConnectionProfile:
    """A stored connection alias. Holds no secrets."""

    alias: str
    user: str
    host: str
    default_port: int = DEFAULT_PORT

    @property
    def target(self) -> str:
        return f"{self.user}@{self.host}"

    def describe(self) -> str:
        """Render as ``alias -> user@host`` (port shown only when not 22)."""
        target = self.target
        if self.default_port != DEFAULT_PORT:
            target = f"{target}:{self.default_port}"
        return f"{self.alias} -> {target}"


def parse_target(target: str) -> tuple[str, str]:
    """Split a ``user@host`` connection string into (user, host)."""
    parts = target.split("@")
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        raise ValidationError(
            f"Invalid connection string '{target}'. Use 'user@host'."
        )
    return parts[0].strip(), parts[1].strip()


def validate_port(port: int) -> int:
    if isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= 65535:
        raise ValidationError(f"Invalid port: {port}. Must be between 1 and 65535.")
    return port


def validate_alias(alias: str) -> str:
    if not alias or not alias.strip():
        raise ValidationError("Alias cannot be empty")
    if alias != alias.strip():
        raise ValidationError(f"Alias '{alias}' cannot start or end with whitespace")
    return alias


class ProfileStore:
    """Alias -> ConnectionProfile mapping backed by a JSON file.

    Every mutation is written to disk before it returns. Writes go through
    a temporary file and ``os.replace`` so an interrupted save never leaves
    a truncated profile file behind.
    """

    def __init__(self, path: Path, profiles: dict[str, ConnectionProfile] | None = None):
        self.path = path
        self._profiles: dict[str, ConnectionProfile] = dict(profiles or {})

    @classmethod
    def load(cls, path: Path | None = None) -> "ProfileStore":
        """Load the store from file.

        Returns an empty store if the file doesn't exist.
        """
        if path is None:
            path = default_profiles_path()

        if not path.exists():
            return cls(path)

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse profile file {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to read profile file {path}: {e}")

        connections = data.get("connections", {}) if isinstance(data, dict) else None
        if not isinstance(connections, dict):
            raise ConfigError(f"{path}: 'connections' must be an object")

        profiles = {}
        for alias, entry in connections.items():
            profiles[alias] = _profile_from_entry(path, alias, entry)

        debug(f"[profiles] loaded {len(profiles)} profile(s) from {path}")
        return cls(path, profiles)

    def add(
        self, alias: str, user: str, host: str, port: int | None = None
    ) -> ConnectionProfile:
        """Add and persist a profile.

        Raises:
            AliasAlreadyExists: If the alias is taken. The store is unchanged.
        """
        validate_alias(alias)
        if not user or not user.strip():
            raise ValidationError("User cannot be empty")
        if not host or not host.strip():
            raise ValidationError("Host cannot be empty")
        port = validate_port(port) if port is not None else DEFAULT_PORT

        if alias in self._profiles:
            raise AliasAlreadyExists(f"Alias '{alias}' already exists.")

        profile = ConnectionProfile(alias=alias, user=user.strip(), host=host.strip(), default_port=port)
        self._profiles[alias] = profile
        try:
            self.save()
        except ConfigError:
            del self._profiles[alias]
            raise
        return profile

    def get(self, alias: str) -> ConnectionProfile | None:
        return self._profiles.get(alias)

    def list(self) -> list[ConnectionProfile]:
        """All profiles, sorted by alias."""
        return [self._profiles[alias] for alias in sorted(self._profiles)]

    def remove(self, alias: str) -> ConnectionProfile:
        """Remove and persist.

        Raises:
            AliasNotFound: If no profile has this alias.
        """
        profile = self._profiles.get(alias)
        if profile is None:
            raise AliasNotFound(f"Alias '{alias}' not found.")

        del self._profiles[alias]
        try:
            self.save()
        except ConfigError:
            self._profiles[alias] = profile
            raise
        return profile

    def __contains__(self, alias: object) -> bool:
        return alias in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)

    def save(self) -> None:
        """Atomically write the store to disk."""
        data = {
            "connections": {
                p.alias: {"user": p.user, "host": p.host, "port": p.default_port}
                for p in self.list()
            }
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                    f.write("\n")
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise ConfigError(f"Failed to write profile file {self.path}: {e}")

        debug(f"[profiles] saved {len(self._profiles)} profile(s) to {self.path}")


def _profile_from_entry(path: Path, alias: str, entry: object) -> ConnectionProfile:
    """Build a profile from a JSON entry (current or legacy form)."""
    try:
        validate_alias(alias)
    except ValidationError as e:
        raise ConfigError(f"{path}: {e.message}")

    if isinstance(entry, str):
        try:
            user, host = parse_target(entry)
        except ValidationError as e:
            raise ConfigError(f"{path}: connection '{alias}': {e.message}")
        return ConnectionProfile(alias=alias, user=user, host=host)

    if not isinstance(entry, dict):
        raise ConfigError(f"{path}: connection '{alias}' must be an object")

    user = entry.get("user")
    host = entry.get("host")
    if not isinstance(user, str) or not user or not isinstance(host, str) or not host:
        raise ConfigError(f"{path}: connection '{alias}' needs 'user' and 'host'")

    port = entry.get("port", DEFAULT_PORT)
    try:
        validate_port(port)
    except ValidationError as e:
        raise ConfigError(f"{path}: connection '{alias}': {e.message}")

    return ConnectionProfile(alias=alias, user=user, host=host, default_port=port)
