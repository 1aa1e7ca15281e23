"""Shared test fixtures for rssh."""

from __future__ import annotations

import posixpath
import stat
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import keyring.errors
import pytest

from rssh.config.profiles import ProfileStore
from rssh.credentials import CredentialResolver, SecretStore
from rssh.session import SessionOrchestrator
from rssh.ssh.transfer import TransferEngine


class MemoryKeyring:
    """In-memory stand-in for a keyring backend."""

    def __init__(self):
        self.entries: dict[tuple[str, str], str] = {}
        self.calls: list[str] = []

    def get_password(self, service, username):
        self.calls.append("get")
        return self.entries.get((service, username))

    def set_password(self, service, username, password):
        self.calls.append("set")
        self.entries[(service, username)] = password

    def delete_password(self, service, username):
        self.calls.append("delete")
        try:
            del self.entries[(service, username)]
        except KeyError:
            raise keyring.errors.PasswordDeleteError("Password not found")


class BrokenKeyring:
    """Keyring backend that is present but fails every call."""

    def get_password(self, service, username):
        raise keyring.errors.KeyringLocked("keyring is locked")

    def set_password(self, service, username, password):
        raise keyring.errors.PasswordSetError("keyring is locked")

    def delete_password(self, service, username):
        raise keyring.errors.KeyringLocked("keyring is locked")


class FakeRemoteFile:
    """File handle on FakeSFTP. Writes land in the fake filesystem as they happen."""

    def __init__(self, sftp, path, mode, data=b""):
        self.sftp = sftp
        self.path = path
        self.mode = mode
        self.data = data
        self.offset = 0
        self.closed = False

    def read(self, size=-1):
        if self.sftp.fail_after is not None and self.offset >= self.sftp.fail_after:
            raise EOFError("Server connection dropped")
        end = len(self.data) if size < 0 else self.offset + size
        if self.sftp.fail_after is not None:
            end = min(end, self.sftp.fail_after)
        chunk = self.data[self.offset:end]
        self.offset += len(chunk)
        return chunk

    def write(self, data):
        if self.sftp.fail_after is not None:
            room = self.sftp.fail_after - len(self.sftp.files[self.path])
            if len(data) > room:
                self.sftp.files[self.path] += data[:max(room, 0)]
                raise OSError("Socket is closed")
        self.sftp.files[self.path] += data

    def close(self):
        self.closed = True
        self.sftp.closed_handles.append(self.path)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class DirectoryHandle(FakeRemoteFile):
    """Read handle on a remote directory."""

    def read(self, size=-1):
        raise IsADirectoryError(21, "Is a directory", self.path)


class FakeSFTP:
    """Minimal in-memory SFTP channel (open/stat) with failure injection."""

    def __init__(self, dirs=("/", "/remote")):
        self.dirs = set(dirs)
        self.files: dict[str, bytes] = {}
        self.fail_after: int | None = None
        self.stat_fails = False
        self.readonly_dirs: set[str] = set()
        self.closed_handles: list[str] = []
        self.closed = False

    def open(self, filename, mode="r"):
        if "w" in mode:
            parent = posixpath.dirname(filename) or "/"
            if parent not in self.dirs:
                raise FileNotFoundError(2, "No such file", filename)
            if parent in self.readonly_dirs:
                raise PermissionError(13, "Permission denied", filename)
            self.files[filename] = b""
            return FakeRemoteFile(self, filename, mode)
        if filename in self.dirs:
            # sftp-server opens directories read-only; reading fails
            return DirectoryHandle(self, filename)
        if filename not in self.files:
            raise FileNotFoundError(2, "No such file", filename)
        return FakeRemoteFile(self, filename, mode, self.files[filename])

    def stat(self, path):
        if self.stat_fails:
            raise OSError("stat not supported")
        if path in self.dirs:
            return SimpleNamespace(st_mode=stat.S_IFDIR | 0o755, st_size=4096)
        if path not in self.files:
            raise FileNotFoundError(2, "No such file", path)
        return SimpleNamespace(st_mode=stat.S_IFREG | 0o644, st_size=len(self.files[path]))

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class FakeSession:
    def __init__(self, sftp):
        self.sftp = sftp
        self.closed = False

    def open_sftp(self):
        return self.sftp

    def invoke_shell(self, term, width, height):
        return MagicMock()

    def close(self):
        self.closed = True


class FakeTransport:
    """Records open() calls and hands out FakeSessions."""

    def __init__(self, sftp=None, error=None):
        self.sftp = sftp if sftp is not None else FakeSFTP()
        self.error = error
        self.calls = []
        self.sessions = []

    def open(self, host, port, user, auth):
        self.calls.append((host, port, user, auth))
        if self.error is not None:
            raise self.error
        session = FakeSession(self.sftp)
        self.sessions.append(session)
        return session


@pytest.fixture
def memory_keyring():
    return MemoryKeyring()


@pytest.fixture
def broken_keyring():
    return BrokenKeyring()


@pytest.fixture
def secret_store(memory_keyring):
    return SecretStore("rssh-test", backend=memory_keyring)


@pytest.fixture
def password_prompt():
    """Prompt that answers 'hunter2' and records who asked."""
    prompt = MagicMock(return_value="hunter2")
    return prompt


@pytest.fixture
def resolver(secret_store, password_prompt):
    return CredentialResolver(secret_store, prompt=password_prompt)


@pytest.fixture
def profile_path(tmp_path):
    return tmp_path / "profiles" / "config.json"


@pytest.fixture
def store(profile_path):
    return ProfileStore.load(profile_path)


@pytest.fixture
def fake_sftp():
    return FakeSFTP()


@pytest.fixture
def fake_transport(fake_sftp):
    return FakeTransport(fake_sftp)


@pytest.fixture
def shell_runner():
    return MagicMock()


@pytest.fixture
def orchestrator(store, resolver, fake_transport, shell_runner):
    return SessionOrchestrator(
        store,
        resolver,
        fake_transport,
        engine=TransferEngine(chunk_size=4096),
        shell_runner=shell_runner,
    )


@pytest.fixture
def make_transport():
    """Factory for FakeTransport with an injected error."""
    return FakeTransport


@pytest.fixture
def mock_home_dir(mocker, tmp_path):
    """Mock Path.home() to return a temp directory."""
    mocker.patch.object(Path, "home", return_value=tmp_path)
    return tmp_path
