"""Profile management commands."""

from __future__ import annotations

from rssh.config.profiles import ProfileStore, parse_target
from rssh.credentials import CredentialResolver
from rssh.exceptions import SecretBackendUnavailable
from rssh.output import success, warn


def add_profile(store: ProfileStore, alias: str, target: str, port: int | None = None) -> int:
    """Save a new alias for user@host."""
    user, host = parse_target(target)
    store.add(alias, user, host, port)
    success(f"Connection '{alias}' added.")
    return 0


def list_profiles(store: ProfileStore) -> int:
    """Print saved connections, sorted by alias."""
    profiles = store.list()
    if not profiles:
        print("No connections saved. Use 'rssh add <alias> <user@host>' to add one.")
        return 0

    print("Saved connections:")
    for profile in profiles:
        print(f"  {profile.describe()}")
    return 0


def remove_profile(store: ProfileStore, resolver: CredentialResolver, alias: str) -> int:
    """Remove an alias and its stored password.

    A keyring failure is reported but does not bring the profile back.
    """
    store.remove(alias)
    try:
        resolver.forget(alias)
    except SecretBackendUnavailable as e:
        warn(f"{e.message} The connection was removed; delete the password manually.")
    success(f"Connection '{alias}' removed.")
    return 0
