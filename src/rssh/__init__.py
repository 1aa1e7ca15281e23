"""rssh - Secure SSH login management tool."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("rssh")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for editable installs without scm
