"""Hand an open session to the local terminal."""

from __future__ import annotations

import os
import select
import shutil
import signal
import sys
import threading

from rssh.output import debug

try:
    import termios
    import tty
except ImportError:  # Windows
    termios = None
    tty = None

BUFFER_SIZE = 1024
DEFAULT_TERM = "xterm-256color"


def run_interactive_shell(session) -> None:
    """Open a pty-backed shell and relay it until the remote side exits."""
    size = shutil.get_terminal_size()
    term = os.environ.get("TERM") or DEFAULT_TERM
    channel = session.invoke_shell(term=term, width=size.columns, height=size.lines)
    debug(f"[shell] {term} {size.columns}x{size.lines}")

    try:
        if termios is not None and sys.stdin.isatty():
            _posix_relay(channel)
        else:
            _threaded_relay(channel)
    finally:
        channel.close()


def _posix_relay(channel) -> None:
    """Raw-mode relay with select; restores the terminal on every exit."""
    stdin_fd = sys.stdin.fileno()
    stdout = sys.stdout.buffer
    old_attrs = termios.tcgetattr(stdin_fd)

    def on_resize(signum, frame):
        size = shutil.get_terminal_size()
        channel.resize_pty(width=size.columns, height=size.lines)

    previous_handler = signal.signal(signal.SIGWINCH, on_resize)
    try:
        tty.setraw(stdin_fd)
        while True:
            readable, _, _ = select.select([channel, stdin_fd], [], [])

            if channel in readable:
                data = channel.recv(BUFFER_SIZE)
                if not data:
                    break
                stdout.write(data)
                stdout.flush()

            if stdin_fd in readable:
                data = os.read(stdin_fd, BUFFER_SIZE)
                if not data:
                    break
                channel.sendall(data)
    finally:
        termios.tcsetattr(stdin_fd, termios.TCSADRAIN, old_attrs)
        signal.signal(signal.SIGWINCH, previous_handler)


def _threaded_relay(channel) -> None:
    """Line-buffered relay for non-tty stdin or platforms without termios."""
    stdout = sys.stdout.buffer

    def pump_output():
        while True:
            data = channel.recv(BUFFER_SIZE)
            if not data:
                break
            stdout.write(data)
            stdout.flush()

    reader = threading.Thread(target=pump_output, daemon=True)
    reader.start()

    for line in iter(sys.stdin.readline, ""):
        if channel.closed:
            break
        channel.sendall(line.encode())

    # stdin ended; let the remote shell finish
    channel.shutdown_write()
    reader.join()
