"""Authenticated SSH sessions via paramiko."""

from __future__ import annotations

import socket
from pathlib import Path
from typing import Callable

import paramiko

from rssh.credentials import AuthMethod, IdentityAuth, PasswordAuth
from rssh.exceptions import (
    AuthenticationAborted,
    AuthRejected,
    HostKeyMismatch,
    HostUnreachable,
    IdentityFileUnreadable,
    SSHError,
)
from rssh.output import debug, info, success

# Tried in order when loading an identity file
KEY_CLASSES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)

PassphrasePrompt = Callable[[Path], "str | None"]


def load_private_key(path: Path, passphrase: str | None = None) -> paramiko.PKey:
    """Load a private key of any supported type.

    Raises:
        paramiko.PasswordRequiredException: If the key is encrypted and no
            passphrase was given.
        IdentityFileUnreadable: If no key type could parse the file.
    """
    last_error: Exception | None = None
    for key_class in KEY_CLASSES:
        try:
            return key_class.from_private_key_file(str(path), password=passphrase)
        except paramiko.PasswordRequiredException:
            raise
        except (paramiko.SSHException, ValueError) as e:
            last_error = e
        except OSError as e:
            raise IdentityFileUnreadable(f"Failed to read identity file {path}: {e}")

    hint = " (wrong passphrase?)" if passphrase else ""
    raise IdentityFileUnreadable(
        f"Identity file {path} is not a supported private key{hint}: {last_error}"
    )


class SSHSession:
    """An open, authenticated SSH connection."""

    def __init__(self, client: paramiko.SSHClient, target: str):
        self.client = client
        self.target = target

    def open_sftp(self) -> paramiko.SFTPClient:
        try:
            return self.client.open_sftp()
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise SSHError(f"Failed to start SFTP session on {self.target}: {e}")

    def invoke_shell(self, term: str, width: int, height: int) -> paramiko.Channel:
        try:
            return self.client.invoke_shell(term=term, width=width, height=height)
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise SSHError(f"Failed to open shell on {self.target}: {e}")

    def close(self) -> None:
        debug(f"[ssh] closing session to {self.target}")
        self.client.close()

    def __enter__(self) -> "SSHSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class SSHTransport:
    """Opens sessions with a resolved AuthMethod and maps failures to rssh errors."""

    def __init__(
        self,
        timeout: float = 10.0,
        host_key_policy: str = "auto-add",
        known_hosts: Path | None = None,
        passphrase_prompt: PassphrasePrompt | None = None,
    ):
        self.timeout = timeout
        self.host_key_policy = host_key_policy
        self.known_hosts = known_hosts
        self.passphrase_prompt = passphrase_prompt

    def open(self, host: str, port: int, user: str, auth: AuthMethod) -> SSHSession:
        """Connect and authenticate.

        Raises:
            HostUnreachable: DNS, socket or timeout failure.
            AuthRejected: Server refused the credentials.
            HostKeyMismatch: Host key differs from (or is missing in) known_hosts.
            IdentityFileUnreadable: Identity file could not be loaded.
            AuthenticationAborted: Key passphrase prompt was left empty.
            SSHError: Any other SSH-level failure.
        """
        target = f"{user}@{host}:{port}"
        credentials = self._credentials(auth)

        client = paramiko.SSHClient()
        try:
            self._load_host_keys(client)
            client.set_missing_host_key_policy(self._policy())

            info(f"Connecting to {target}")
            self._connect(client, host, port, user, target, credentials)
        except BaseException:
            client.close()
            raise

        success("Successfully connected!")
        return SSHSession(client, target)

    def _credentials(self, auth: AuthMethod) -> dict:
        if isinstance(auth, IdentityAuth):
            return {"pkey": self._load_identity(auth.path)}
        if isinstance(auth, PasswordAuth):
            return {"password": auth.secret}
        raise TypeError(f"Unsupported auth method: {auth!r}")

    def _load_identity(self, path: Path) -> paramiko.PKey:
        try:
            return load_private_key(path)
        except paramiko.PasswordRequiredException:
            pass

        # Encrypted key: ask once, like ssh does
        passphrase = self.passphrase_prompt(path) if self.passphrase_prompt else None
        if not passphrase:
            raise AuthenticationAborted(f"No passphrase entered for {path}")
        try:
            return load_private_key(path, passphrase)
        except paramiko.PasswordRequiredException:
            raise IdentityFileUnreadable(f"Passphrase for {path} was not accepted")

    def _load_host_keys(self, client: paramiko.SSHClient) -> None:
        try:
            client.load_system_host_keys()
            if self.known_hosts is not None:
                client.load_host_keys(str(self.known_hosts))
        except (OSError, paramiko.SSHException) as e:
            raise SSHError(f"Failed to load known_hosts: {e}")

    def _policy(self) -> paramiko.MissingHostKeyPolicy:
        if self.host_key_policy == "reject":
            return paramiko.RejectPolicy()
        if self.host_key_policy == "warn":
            return paramiko.WarningPolicy()
        return paramiko.AutoAddPolicy()

    def _connect(
        self,
        client: paramiko.SSHClient,
        host: str,
        port: int,
        user: str,
        target: str,
        credentials: dict,
    ) -> None:
        try:
            client.connect(
                host,
                port=port,
                username=user,
                timeout=self.timeout,
                banner_timeout=self.timeout,
                auth_timeout=self.timeout,
                allow_agent=False,
                look_for_keys=False,
                **credentials,
            )
        except paramiko.BadHostKeyException as e:
            raise HostKeyMismatch(
                f"Host key for {host} does not match known_hosts "
                f"(got {e.key.get_name()}). Possible man-in-the-middle attack."
            )
        except paramiko.AuthenticationException as e:
            raise AuthRejected(
                f"Authentication to {target} failed. Please check your credentials. ({e})"
            )
        except paramiko.SSHException as e:
            if "known_hosts" in str(e):
                raise HostKeyMismatch(f"Host {host} is not in known_hosts: {e}")
            raise SSHError(f"SSH connection to {target} failed: {e}")
        except socket.gaierror:
            raise HostUnreachable(f"Could not resolve hostname '{host}'")
        except socket.timeout:
            raise HostUnreachable(f"SSH connection to {target} timed out")
        except paramiko.ssh_exception.NoValidConnectionsError as e:
            raise HostUnreachable(f"Failed to connect to {target}: {e}")
        except (OSError, EOFError) as e:
            raise HostUnreachable(f"Failed to connect to {target}: {e}")
