"""Chunked SFTP file transfer with progress reporting."""

from __future__ import annotations

import os
import posixpath
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Any, Callable, Protocol

import paramiko

from rssh.exceptions import (
    DestinationUnwritable,
    SourceUnreadable,
    TransferError,
    TransferInterrupted,
)
from rssh.output import debug

DEFAULT_CHUNK_SIZE = 32 * 1024

# Errors a dropped SFTP session surfaces mid-copy
_CHANNEL_ERRORS = (OSError, EOFError, paramiko.SSHException, paramiko.SFTPError)


class Direction(Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"


class TransferStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class RemoteFileChannel(Protocol):
    """The part of paramiko.SFTPClient the engine relies on."""

    def stat(self, path: str) -> Any: ...

    def open(self, filename: str, mode: str = "r") -> IO[bytes]: ...


@dataclass
class TransferJob:
    """One file transfer. Lives only for the duration of a command."""

    direction: Direction
    source_path: str
    destination_path: str
    total_bytes: int | None = None
    transferred_bytes: int = 0
    status: TransferStatus = TransferStatus.PENDING

    @classmethod
    def for_upload(cls, local_path: str | Path, remote_dir: str) -> "TransferJob":
        """Upload local_path into remote_dir, keeping the file name."""
        name = os.path.basename(os.path.normpath(str(local_path)))
        return cls(
            direction=Direction.UPLOAD,
            source_path=str(local_path),
            destination_path=posixpath.join(remote_dir, name),
        )

    @classmethod
    def for_download(cls, remote_path: str, local_dir: str | Path) -> "TransferJob":
        """Download remote_path into local_dir, keeping the file name.

        Raises:
            SourceUnreadable: If remote_path does not name a file.
        """
        name = posixpath.basename(remote_path)
        if not name or name in (".", ".."):
            raise SourceUnreadable(
                f"Remote path {remote_path} is a directory or invalid. "
                "Please provide a path to a file to download."
            )
        return cls(
            direction=Direction.DOWNLOAD,
            source_path=remote_path,
            destination_path=os.path.join(str(local_dir), name),
        )

    @property
    def percent(self) -> float | None:
        if not self.total_bytes:
            return None
        return 100.0 * self.transferred_bytes / self.total_bytes


ProgressCallback = Callable[[TransferJob], None]


class TransferEngine:
    """Copy a file between the local filesystem and an SFTP channel.

    Both handles are closed on every exit path. When the copy fails
    midway the partially written destination is left as it is, and a
    retry starts again from byte zero.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        on_progress: ProgressCallback | None = None,
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size
        self.on_progress = on_progress

    def run(self, channel: RemoteFileChannel, job: TransferJob) -> TransferJob:
        """Drive the job to completion.

        Raises:
            SourceUnreadable: Source missing or unreadable.
            DestinationUnwritable: Destination directory missing or not writable.
            TransferInterrupted: I/O failed after the copy started.
        """
        job.status = TransferStatus.RUNNING
        job.transferred_bytes = 0
        debug(f"[transfer] {job.direction.value}: {job.source_path} -> {job.destination_path}")
        try:
            if job.direction is Direction.UPLOAD:
                self._upload(channel, job)
            else:
                self._download(channel, job)
        except BaseException:
            job.status = TransferStatus.FAILED
            raise
        job.status = TransferStatus.COMPLETED
        debug(f"[transfer] done, {job.transferred_bytes} bytes")
        return job

    def _upload(self, channel: RemoteFileChannel, job: TransferJob) -> None:
        source = Path(job.source_path)
        if not source.is_file():
            raise SourceUnreadable(
                f"Local path {source} is not a file. Please provide a path to a file to upload."
            )

        try:
            job.total_bytes = source.stat().st_size
            reader = open(source, "rb")
        except OSError as e:
            raise SourceUnreadable(f"Failed to open local file {source}: {e}")

        with reader:
            try:
                writer = channel.open(job.destination_path, "wb")
            except _CHANNEL_ERRORS as e:
                raise DestinationUnwritable(
                    f"Failed to create remote file {job.destination_path}: {e}"
                )
            if hasattr(writer, "set_pipelined"):
                writer.set_pipelined(True)
            self._copy(reader, writer, job)

    def _download(self, channel: RemoteFileChannel, job: TransferJob) -> None:
        local_dir = Path(job.destination_path).parent
        if not local_dir.is_dir():
            raise DestinationUnwritable(
                f"Local destination {local_dir} is not a directory"
            )

        job.total_bytes = self._remote_size(channel, job.source_path)
        try:
            reader = channel.open(job.source_path, "rb")
        except _CHANNEL_ERRORS as e:
            raise SourceUnreadable(f"Failed to open remote file {job.source_path}: {e}")

        try:
            with reader:
                if job.total_bytes and hasattr(reader, "prefetch"):
                    reader.prefetch(job.total_bytes)

                try:
                    writer = open(job.destination_path, "wb")
                except OSError as e:
                    raise DestinationUnwritable(
                        f"Failed to create local file {job.destination_path}: {e}"
                    )
                self._copy(reader, writer, job)
        except TransferError:
            raise
        except _CHANNEL_ERRORS as e:
            # Closing the remote handle on a dead session
            raise TransferInterrupted(
                f"Transfer interrupted after {job.transferred_bytes} bytes: {e}"
            )

    def _remote_size(self, channel: RemoteFileChannel, path: str) -> int | None:
        """Size of the remote source, None if the server won't say.

        Raises:
            SourceUnreadable: If the source is a directory.
        """
        try:
            attrs = channel.stat(path)
        except _CHANNEL_ERRORS as e:
            debug(f"[transfer] could not stat {path}: {e}")
            return None
        mode = getattr(attrs, "st_mode", None)
        if mode is not None and stat.S_ISDIR(mode):
            raise SourceUnreadable(
                f"Remote path {path} is a directory. "
                "Please provide a path to a file to download."
            )
        size = getattr(attrs, "st_size", None)
        return int(size) if size is not None else None

    def _copy(self, reader: IO[bytes], writer: IO[bytes], job: TransferJob) -> None:
        self._notify(job)
        try:
            with writer:
                while True:
                    chunk = reader.read(self.chunk_size)
                    if not chunk:
                        break
                    writer.write(chunk)
                    job.transferred_bytes += len(chunk)
                    self._notify(job)
        except _CHANNEL_ERRORS as e:
            raise TransferInterrupted(
                f"Transfer interrupted after {job.transferred_bytes} bytes: {e}"
            )

    def _notify(self, job: TransferJob) -> None:
        if self.on_progress is not None:
            self.on_progress(job)
