"""SSH sessions, interactive shells and file transfer."""

from rssh.ssh.transfer import TransferEngine, TransferJob
from rssh.ssh.transport import SSHSession, SSHTransport

__all__ = ["SSHSession", "SSHTransport", "TransferEngine", "TransferJob"]
