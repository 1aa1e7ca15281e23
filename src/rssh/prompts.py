"""Interactive prompts."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt

from rssh.config.profiles import ConnectionProfile, validate_port
from rssh.exceptions import ValidationError
from rssh.session import ConnectRequest

_console = Console(stderr=True)


def ask_password(profile: ConnectionProfile) -> str | None:
    """Ask for the password of a profile. None on EOF."""
    try:
        return Prompt.ask(
            f"Enter password for {profile.target}", password=True, console=_console
        )
    except EOFError:
        return None


def ask_passphrase(path: Path) -> str | None:
    """Ask for the passphrase of an encrypted private key. None on EOF."""
    try:
        return Prompt.ask(f"Enter passphrase for key {path}", password=True, console=_console)
    except EOFError:
        return None


def ask_connect_request(profiles: list[ConnectionProfile]) -> ConnectRequest:
    """Collect alias, port and identity file for the interactive mode."""
    by_alias = {p.alias: p for p in profiles}
    for profile in profiles:
        _console.print(f"  {profile.describe()}")

    try:
        alias = Prompt.ask(
            "Select a connection to open",
            choices=list(by_alias),
            default=profiles[0].alias if len(profiles) == 1 else ...,
            console=_console,
        )
        port = IntPrompt.ask(
            "Enter port", default=by_alias[alias].default_port, console=_console
        )
        validate_port(port)

        identity_path = None
        if Confirm.ask("Use identity file (private key)?", default=False, console=_console):
            path_str = Prompt.ask("Enter path to private key", console=_console).strip()
            if not path_str:
                raise ValidationError("No identity file path entered")
            identity_path = Path(path_str).expanduser()
    except EOFError:
        raise ValidationError("Input ended before the connection was chosen")

    return ConnectRequest(alias=alias, port=port, identity_path=identity_path)
