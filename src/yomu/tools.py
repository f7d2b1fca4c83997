from __future__ import annotations

import zipfile
from pathlib import Path

import requests
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
)

from .archive import is_term_bank_name

__all__ = ["ArchiveDownloadError", "download_archive"]

_CHUNK_SIZE = 1024 * 1024


class ArchiveDownloadError(RuntimeError):
    """Raised when a dictionary archive cannot be downloaded."""


def _count_term_banks(path: Path) -> int:
    try:
        with zipfile.ZipFile(path) as zf:
            return sum(1 for name in zf.namelist() if is_term_bank_name(name))
    except zipfile.BadZipFile as exc:
        raise ArchiveDownloadError(f"Downloaded file is not a zip archive: {exc}") from exc


def download_archive(url: str, destination: Path, *, force: bool = False) -> Path:
    """
    Stream a dictionary archive to ``destination``.

    Data is written to ``<destination>.part`` and renamed once the archive
    is known to contain at least one term bank.
    """
    destination = Path(destination)
    if destination.exists() and not force:
        return destination
    destination.parent.mkdir(parents=True, exist_ok=True)
    partial = destination.with_name(destination.name + ".part")
    try:
        response = requests.get(url, stream=True, timeout=60)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise ArchiveDownloadError(f"Failed to download dictionary archive: {exc}") from exc

    total = response.headers.get("Content-Length")
    total_bytes = int(total) if total and total.isdigit() else None
    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TimeRemainingColumn(),
        transient=True,
    )
    try:
        with partial.open("wb") as handle, progress:
            task = progress.add_task(f"Downloading {destination.name}", total=total_bytes)
            for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                if not chunk:
                    continue
                handle.write(chunk)
                progress.advance(task, len(chunk))
    except requests.RequestException as exc:
        partial.unlink(missing_ok=True)
        raise ArchiveDownloadError(f"Download interrupted: {exc}") from exc
    finally:
        response.close()

    try:
        banks = _count_term_banks(partial)
    except ArchiveDownloadError:
        partial.unlink(missing_ok=True)
        raise
    if banks == 0:
        partial.unlink(missing_ok=True)
        raise ArchiveDownloadError(f"No term banks found in archive from {url}")
    partial.replace(destination)
    return destination
