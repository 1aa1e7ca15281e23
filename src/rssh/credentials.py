"""Credential resolution: identity file or keyring-stored password."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol, Union

import keyring
import keyring.errors

from rssh.config.profiles import ConnectionProfile
from rssh.exceptions import (
    AuthenticationAborted,
    IdentityFileUnreadable,
    SecretBackendUnavailable,
)
from rssh.output import debug, warn

SERVICE_NAME = "rssh"


@dataclass(frozen=True)
class PasswordAuth:
    """Password authentication.

    ``prompted`` is True when the secret was typed in for this connection
    rather than read from the keyring, i.e. it has not been stored yet.
    """

    secret: str
    prompted: bool = False

    def __repr__(self) -> str:
        return f"PasswordAuth(secret='***', prompted={self.prompted})"


@dataclass(frozen=True)
class IdentityAuth:
    """Public-key authentication with a private key file."""

    path: Path


AuthMethod = Union[PasswordAuth, IdentityAuth]

PasswordPrompt = Callable[[ConnectionProfile], "str | None"]


class KeyringBackend(Protocol):
    def get_password(self, service: str, username: str) -> str | None: ...

    def set_password(self, service: str, username: str, password: str) -> None: ...

    def delete_password(self, service: str, username: str) -> None: ...


class SecretStore:
    """Passwords kept in the platform keychain, keyed by alias."""

    def __init__(self, service: str = SERVICE_NAME, backend: KeyringBackend | None = None):
        self.service = service
        self._backend = backend

    @property
    def backend(self) -> KeyringBackend:
        if self._backend is None:
            self._backend = keyring.get_keyring()
        return self._backend

    def get(self, alias: str) -> str | None:
        """Return the stored secret, or None if there is none.

        Raises:
            SecretBackendUnavailable: If the keyring itself fails.
        """
        try:
            return self.backend.get_password(self.service, alias)
        except keyring.errors.KeyringError as e:
            raise SecretBackendUnavailable(
                f"Failed to retrieve password for '{alias}' from the keyring: {e}"
            )

    def set(self, alias: str, secret: str) -> None:
        try:
            self.backend.set_password(self.service, alias, secret)
        except keyring.errors.KeyringError as e:
            raise SecretBackendUnavailable(
                f"Failed to save password for '{alias}' to the keyring: {e}"
            )

    def delete(self, alias: str) -> None:
        """Delete the stored secret. A missing entry is not an error."""
        try:
            self.backend.delete_password(self.service, alias)
        except keyring.errors.PasswordDeleteError:
            debug(f"[credentials] no stored password for '{alias}'")
        except keyring.errors.KeyringError as e:
            raise SecretBackendUnavailable(
                f"Failed to delete password for '{alias}' from the keyring: {e}"
            )


class CredentialResolver:
    """Decide the AuthMethod for a connection attempt."""

    def __init__(
        self,
        secrets: SecretStore,
        prompt: PasswordPrompt,
        save_secrets: bool = True,
    ):
        self.secrets = secrets
        self.prompt = prompt
        self.save_secrets = save_secrets

    def resolve(
        self, profile: ConnectionProfile, identity_path: Path | None = None
    ) -> AuthMethod:
        """Resolve credentials for the profile.

        An identity file always wins and never touches the keyring.

        Raises:
            IdentityFileUnreadable: If the identity file can't be read.
            SecretBackendUnavailable: If the keyring fails.
            AuthenticationAborted: If no password was entered.
        """
        if identity_path is not None:
            path = Path(identity_path).expanduser()
            if not path.is_file() or not os.access(path, os.R_OK):
                raise IdentityFileUnreadable(f"Identity file {path} is not a readable file")
            debug(f"[credentials] using identity file {path}")
            return IdentityAuth(path)

        secret = self.secrets.get(profile.alias)
        if secret is not None:
            debug(f"[credentials] using stored password for '{profile.alias}'")
            return PasswordAuth(secret)

        secret = self.prompt(profile)
        if not secret:
            raise AuthenticationAborted(f"No password entered for '{profile.alias}'")
        return PasswordAuth(secret, prompted=True)

    def remember(self, profile: ConnectionProfile, auth: AuthMethod) -> None:
        """Store a prompted password once the server has accepted it.

        Failing to store is reported and otherwise ignored.
        """
        if not isinstance(auth, PasswordAuth) or not auth.prompted or not self.save_secrets:
            return
        try:
            self.secrets.set(profile.alias, auth.secret)
        except SecretBackendUnavailable as e:
            warn(e.message)
            return
        debug(f"[credentials] saved password for '{profile.alias}'")

    def forget(self, alias: str) -> None:
        """Delete any stored password for the alias.

        Raises:
            SecretBackendUnavailable: If the keyring fails for a reason
                other than a missing entry.
        """
        self.secrets.delete(alias)
