"""Command-line interface for rssh."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rssh import __version__
from rssh import prompts
from rssh.config import ProfileStore, Settings
from rssh.credentials import CredentialResolver, SecretStore
from rssh.exceptions import RsshError, ValidationError
from rssh.output import error, setup_logging
from rssh.session import ConnectRequest, SessionOrchestrator
from rssh.ssh import SSHTransport, TransferEngine


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port number: {value!r}")
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port must be between 1 and 65535: {port}")
    return port


def _add_connection_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-p", "--port", type=_port, help="Port to connect to (default: profile port, or 22)"
    )
    parser.add_argument(
        "-i", "--identity", type=Path, metavar="PATH", help="Path to the private key file"
    )


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser."""
    parser = argparse.ArgumentParser(
        prog="rssh",
        description="A secure SSH login management tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rssh add web deploy@1.2.3.4          # save an alias
  rssh add db admin@db.local -p 2222   # alias with a non-default port
  rssh list                            # show saved aliases
  rssh connect web                     # password from keychain (asked once)
  rssh connect web -i ~/.ssh/id_ed25519
  rssh upload web ./build.tar.gz /srv/releases
  rssh download web /var/log/app.log ./logs
  rssh remove web                      # also forgets the stored password
  rssh                                 # pick a connection interactively
""",
    )

    parser.add_argument(
        "-V", "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--debug", action="store_true", help="Debug mode")
    parser.add_argument(
        "--config", type=Path, metavar="PATH", help="Config file (default: ~/.config/rssh/config.toml)"
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    add = sub.add_parser("add", help="Add a new SSH connection")
    add.add_argument("alias", help="A unique alias for the connection")
    add.add_argument("connection_string", help="Connection string in user@host format")
    add.add_argument("-p", "--port", type=_port, help="Default port for this connection")

    sub.add_parser("list", help="List all saved SSH connections")

    remove = sub.add_parser("remove", help="Remove a saved SSH connection")
    remove.add_argument("alias", help="The alias of the connection to remove")

    connect = sub.add_parser("connect", help="Connect to a server using a saved alias")
    connect.add_argument("alias", help="The alias of the connection to use")
    _add_connection_options(connect)

    upload = sub.add_parser("upload", help="Upload a file to a remote directory")
    upload.add_argument("alias", help="The alias of the connection to use")
    upload.add_argument("local_path", type=Path, help="Local file to upload")
    upload.add_argument("remote_path", help="Remote directory to save the file in")
    _add_connection_options(upload)

    download = sub.add_parser("download", help="Download a file to a local directory")
    download.add_argument("alias", help="The alias of the connection to use")
    download.add_argument("remote_path", help="Remote file to download")
    download.add_argument("local_path", type=Path, help="Local directory to save the file in")
    _add_connection_options(download)

    return parser


def build_orchestrator(settings: Settings, store: ProfileStore) -> SessionOrchestrator:
    """Wire the keyring, transport and transfer engine from settings."""
    resolver = CredentialResolver(
        SecretStore(settings.keyring_service),
        prompt=prompts.ask_password,
        save_secrets=settings.save_passwords,
    )
    transport = SSHTransport(
        timeout=settings.connect_timeout,
        host_key_policy=settings.host_key_policy,
        known_hosts=settings.known_hosts,
        passphrase_prompt=prompts.ask_passphrase,
    )
    return SessionOrchestrator(
        store,
        resolver,
        transport,
        engine=TransferEngine(chunk_size=settings.chunk_size),
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    try:
        return _main(argv)
    except RsshError as e:
        error(e.message)
        return e.exit_code
    except KeyboardInterrupt:
        return 130


def _main(argv: list[str] | None = None) -> int:
    """Internal main function that may raise RsshError."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(debug=args.debug)

    settings = Settings.load(args.config)
    store = ProfileStore.load(settings.profiles_path)

    if args.command == "add":
        from rssh.commands.profiles import add_profile

        return add_profile(store, args.alias, args.connection_string, args.port)

    if args.command == "list":
        from rssh.commands.profiles import list_profiles

        return list_profiles(store)

    orchestrator = build_orchestrator(settings, store)

    if args.command == "remove":
        from rssh.commands.profiles import remove_profile

        return remove_profile(store, orchestrator.resolver, args.alias)

    if args.command is None:
        from rssh.commands.connection import interactive

        if not sys.stdin.isatty():
            raise ValidationError("Interactive mode needs a terminal; pass a command instead")
        return interactive(store, orchestrator, prompts.ask_connect_request)

    request = ConnectRequest(
        alias=args.alias, port=args.port, identity_path=args.identity
    )

    if args.command == "connect":
        from rssh.commands.connection import connect

        return connect(orchestrator, request)

    if args.command == "upload":
        from rssh.commands.transfer import upload

        return upload(orchestrator, request, args.local_path, args.remote_path)

    if args.command == "download":
        from rssh.commands.transfer import download

        return download(orchestrator, request, args.remote_path, args.local_path)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
