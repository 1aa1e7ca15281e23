"""Exception hierarchy for rssh."""

from __future__ import annotations


class RsshError(Exception):
    """Base exception for all rssh errors.

    Attributes:
        message: Human-readable error message
        exit_code: Suggested exit code for CLI (default 1)
    """

    def __init__(self, message: str, exit_code: int = 1):
        self.message = message
        self.exit_code = exit_code
        super().__init__(message)


class ConfigError(RsshError):
    """Configuration-related errors (config.toml, profile file)."""

    pass


class ValidationError(RsshError):
    """Input validation errors (aliases, targets, ports)."""

    pass


class ProfileError(RsshError):
    """Profile store errors."""

    pass


class AliasAlreadyExists(ProfileError):
    """An alias with this name is already stored."""

    pass


class AliasNotFound(ProfileError):
    """No stored profile matches the alias."""

    pass


class UnknownAlias(AliasNotFound):
    """A session was requested for an alias that is not stored."""

    pass


class CredentialError(RsshError):
    """Credential resolution errors."""

    pass


class IdentityFileUnreadable(CredentialError):
    """The identity file is missing, unreadable or not a private key."""

    pass


class AuthenticationAborted(CredentialError):
    """No secret was supplied when one was asked for."""

    pass


class SecretBackendUnavailable(CredentialError):
    """The keyring backend failed for a reason other than a missing entry."""

    pass


class SSHError(RsshError):
    """SSH connection errors."""

    pass


class HostUnreachable(SSHError):
    """Host could not be resolved or reached."""

    pass


class AuthRejected(SSHError):
    """Server rejected the supplied credentials."""

    pass


class HostKeyMismatch(SSHError):
    """Server host key does not match (or is not in) known_hosts."""

    pass


class TransferError(RsshError):
    """File transfer (SFTP) errors."""

    pass


class SourceUnreadable(TransferError):
    """Transfer source is missing or cannot be read."""

    pass


class DestinationUnwritable(TransferError):
    """Transfer destination directory is missing or not writable."""

    pass


class TransferInterrupted(TransferError):
    """Copy failed midway; the partial destination file is left in place."""

    pass
