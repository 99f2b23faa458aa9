"""
L4 Execution — Artifact download and archive extraction.

Plain, non-resumable HTTP downloads.  Files are written to
``<name>.part`` and renamed on completion, so a file present under
its final name is always complete and can be reused as a cache hit.
"""

from __future__ import annotations

import logging
import shutil
import urllib.request
import zipfile
from pathlib import Path
from urllib.parse import unquote, urlparse

logger = logging.getLogger(__name__)

_USER_AGENT = "gpuboot/0.1"
_CHUNK = 1024 * 1024


def _fmt_size(n: int) -> str:
    """Human-readable byte count."""
    if n < 1024:
        return f"{n} B"
    size = float(n)
    for unit in ("KB", "MB"):
        size /= 1024
        if size < 1024:
            return f"{size:.1f} {unit}"
    return f"{size / 1024:.1f} GB"


def filename_from_url(url: str) -> str:
    """Last path segment of a URL, e.g. ``ninja-win.zip``."""
    name = unquote(Path(urlparse(url).path).name)
    if not name:
        raise ValueError(f"URL has no file name: {url}")
    return name


def download_file(url: str, dest: Path, *, timeout: int = 60) -> Path:
    """Download ``url`` to ``dest``.

    Logs progress every 10%.

    Raises:
        OSError: On any network or filesystem failure (``URLError`` is
            an ``OSError``).  No partial file is left under ``dest``.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    part = dest.with_name(dest.name + ".part")

    logger.info("Downloading %s", url)
    req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            total = int(resp.headers.get("Content-Length", 0) or 0)
            downloaded = 0
            last_progress = -10
            with open(part, "wb") as f:
                while True:
                    chunk = resp.read(_CHUNK)
                    if not chunk:
                        break
                    f.write(chunk)
                    downloaded += len(chunk)
                    if total > 0:
                        pct = int(downloaded * 100 / total)
                        if pct >= last_progress + 10:
                            last_progress = pct
                            logger.info(
                                "Download progress: %d%% (%s / %s)",
                                pct, _fmt_size(downloaded), _fmt_size(total),
                            )
    except OSError:
        part.unlink(missing_ok=True)
        raise

    part.replace(dest)
    logger.info("Downloaded %s to %s", _fmt_size(downloaded), dest)
    return dest


def fetch_cached(url: str, cache_dir: Path, *, timeout: int = 60) -> Path:
    """Download ``url`` into ``cache_dir`` unless that file name is already there."""
    dest = cache_dir / filename_from_url(url)
    if dest.is_file() and dest.stat().st_size > 0:
        logger.info("Using cached %s", dest)
        return dest
    return download_file(url, dest, timeout=timeout)


def extract_zip(archive: Path, dest: Path) -> list[str]:
    """Extract a zip archive into ``dest``.

    Returns:
        Names of the extracted members.

    Raises:
        zipfile.BadZipFile: If the archive is corrupt.
        ValueError: If a member would land outside ``dest``.
    """
    dest.mkdir(parents=True, exist_ok=True)
    root = dest.resolve()
    with zipfile.ZipFile(archive) as zf:
        names = zf.namelist()
        for name in names:
            target = (dest / name).resolve()
            if root != target and root not in target.parents:
                raise ValueError(f"Unsafe path in archive: {name}")
        zf.extractall(dest)
    logger.debug("Extracted %d files from %s into %s", len(names), archive.name, dest)
    return names


def remove_tree(path: Path) -> bool:
    """Delete a directory tree.  Returns False if it did not exist."""
    if not path.exists():
        return False
    shutil.rmtree(path)
    return True
