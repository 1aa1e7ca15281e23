"""Session orchestration: profile -> credentials -> session -> shell or transfer."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Protocol

from rssh.config.profiles import DEFAULT_PORT, ConnectionProfile, ProfileStore
from rssh.credentials import AuthMethod, CredentialResolver
from rssh.exceptions import UnknownAlias
from rssh.output import debug
from rssh.ssh.shell import run_interactive_shell
from rssh.ssh.transfer import ProgressCallback, TransferEngine, TransferJob


class SessionState(Enum):
    IDLE = "idle"
    PROFILE_LOADED = "profile_loaded"
    CREDENTIALS_RESOLVED = "credentials_resolved"
    SESSION_OPEN = "session_open"
    INTERACTIVE_SHELL = "interactive_shell"
    TRANSFER_IN_PROGRESS = "transfer_in_progress"
    CLOSED = "closed"


@dataclass(frozen=True)
class ConnectRequest:
    """What to connect to, whether it came from flags or prompts."""

    alias: str
    port: int | None = None
    identity_path: Path | None = None


class Transport(Protocol):
    def open(self, host: str, port: int, user: str, auth: AuthMethod): ...


def resolve_port(requested: int | None, profile: ConnectionProfile) -> int:
    """Explicit port > profile default > 22."""
    if requested is not None:
        return requested
    return profile.default_port or DEFAULT_PORT


class SessionOrchestrator:
    """Runs one command through the session state machine.

    Every run ends in CLOSED, and the session handle is released
    whichever path was taken.
    """

    def __init__(
        self,
        store: ProfileStore,
        resolver: CredentialResolver,
        transport: Transport,
        engine: TransferEngine | None = None,
        shell_runner: Callable[..., None] = run_interactive_shell,
    ):
        self.store = store
        self.resolver = resolver
        self.transport = transport
        self.engine = engine or TransferEngine()
        self.shell_runner = shell_runner
        self.state = SessionState.IDLE
        self.job: TransferJob | None = None

    def connect(self, request: ConnectRequest) -> None:
        """Open an interactive shell on the alias."""
        with self._session(request) as session:
            self._enter(SessionState.INTERACTIVE_SHELL)
            self.shell_runner(session)

    def upload(
        self,
        request: ConnectRequest,
        local_path: Path,
        remote_dir: str,
        on_progress: ProgressCallback | None = None,
    ) -> TransferJob:
        """Upload local_path into remote_dir (file name preserved)."""
        return self._transfer(
            request, lambda: TransferJob.for_upload(local_path, remote_dir), on_progress
        )

    def download(
        self,
        request: ConnectRequest,
        remote_path: str,
        local_dir: Path,
        on_progress: ProgressCallback | None = None,
    ) -> TransferJob:
        """Download remote_path into local_dir (file name preserved)."""
        return self._transfer(
            request, lambda: TransferJob.for_download(remote_path, local_dir), on_progress
        )

    def _transfer(
        self,
        request: ConnectRequest,
        make_job: Callable[[], TransferJob],
        on_progress: ProgressCallback | None,
    ) -> TransferJob:
        self.job = None

        def prepare() -> None:
            self.job = make_job()

        with self._session(request, prepare) as session:
            self._enter(SessionState.TRANSFER_IN_PROGRESS)
            engine = self.engine
            if on_progress is not None:
                engine = TransferEngine(chunk_size=engine.chunk_size, on_progress=on_progress)
            with session.open_sftp() as sftp:
                return engine.run(sftp, self.job)

    @contextmanager
    def _session(
        self, request: ConnectRequest, prepare: Callable[[], None] | None = None
    ) -> Iterator:
        """Open a session for the alias; ``prepare`` runs once the profile is known."""
        self.state = SessionState.IDLE
        try:
            profile = self.store.get(request.alias)
            if profile is None:
                raise UnknownAlias(f"Alias '{request.alias}' not found.")
            self._enter(SessionState.PROFILE_LOADED)
            if prepare is not None:
                prepare()

            auth = self.resolver.resolve(profile, request.identity_path)
            self._enter(SessionState.CREDENTIALS_RESOLVED)

            port = resolve_port(request.port, profile)
            session = self.transport.open(profile.host, port, profile.user, auth)
            try:
                self._enter(SessionState.SESSION_OPEN)
                self.resolver.remember(profile, auth)
                yield session
            finally:
                session.close()
        finally:
            self._enter(SessionState.CLOSED)

    def _enter(self, state: SessionState) -> None:
        debug(f"[session] {self.state.value} -> {state.value}")
        self.state = state
