"""File transfer commands."""

from __future__ import annotations

import posixpath
from pathlib import Path

from rssh.exceptions import TransferInterrupted
from rssh.output import TransferProgress, info, success, warn
from rssh.session import ConnectRequest, SessionOrchestrator
from rssh.ssh.transfer import ProgressCallback, TransferJob


def upload(
    orchestrator: SessionOrchestrator,
    request: ConnectRequest,
    local_path: Path,
    remote_dir: str,
) -> int:
    """Upload a local file into a remote directory."""
    try:
        with TransferProgress(local_path.name) as progress:
            orchestrator.upload(
                request, local_path, remote_dir, on_progress=_announce("Uploading", progress)
            )
    except TransferInterrupted:
        _warn_partial(f"{request.alias}:{orchestrator.job.destination_path}")
        raise

    success("Upload complete")
    return 0


def download(
    orchestrator: SessionOrchestrator,
    request: ConnectRequest,
    remote_path: str,
    local_dir: Path,
) -> int:
    """Download a remote file into a local directory."""
    try:
        with TransferProgress(posixpath.basename(remote_path)) as progress:
            orchestrator.download(
                request, remote_path, local_dir, on_progress=_announce("Downloading", progress)
            )
    except TransferInterrupted:
        _warn_partial(orchestrator.job.destination_path)
        raise

    success("Download complete")
    return 0


def _announce(verb: str, progress: ProgressCallback) -> ProgressCallback:
    """Name source and destination on the start report, then feed the bar."""

    def report(job: TransferJob) -> None:
        if job.transferred_bytes == 0:
            info(f"{verb} {job.source_path} to {job.destination_path}...")
        progress(job)

    return report


def _warn_partial(path: str) -> None:
    warn(f"Partial file left at {path}; rerun to transfer it again from the start.")
