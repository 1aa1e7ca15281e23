"""Interactive session commands."""

from __future__ import annotations

from typing import Callable

from rssh.config.profiles import ConnectionProfile, ProfileStore
from rssh.session import ConnectRequest, SessionOrchestrator


def connect(orchestrator: SessionOrchestrator, request: ConnectRequest) -> int:
    """Open an interactive SSH session to the alias."""
    orchestrator.connect(request)
    return 0


def interactive(
    store: ProfileStore,
    orchestrator: SessionOrchestrator,
    ask: Callable[[list[ConnectionProfile]], ConnectRequest],
) -> int:
    """Prompt for alias, port and identity file, then connect."""
    profiles = store.list()
    if not profiles:
        print("No connections saved. Use 'add' command first.")
        return 0

    request = ask(profiles)
    return connect(orchestrator, request)
