from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import requests

from .progress import ProgressTracker

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60
CHUNK_BYTES = 1024 * 1024
USER_AGENT = "ceremony-installer"


class DownloadError(RuntimeError):
    pass


def _session(session: Optional[Any]) -> Any:
    if session is not None:
        return session
    s = requests.Session()
    s.headers["User-Agent"] = USER_AGENT
    return s


def fetch_text(url: str, *, timeout: float = DEFAULT_TIMEOUT, session: Optional[Any] = None) -> str:
    """GET a small text resource (release manifests)."""

    s = _session(session)
    logger.info("GET %s", url)
    try:
        r = s.get(url, timeout=timeout)
    except (requests.RequestException, OSError) as e:
        raise DownloadError(f"Error fetching {url}: {e}") from e
    if not 200 <= r.status_code < 300:
        raise DownloadError(f"Error fetching {url}: HTTP {r.status_code}")
    return r.text


def download_file(
    url: str,
    dest: str | Path,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[Any] = None,
    progress: bool = False,
    dry_run: bool = False,
) -> Path:
    """Stream ``url`` into ``dest``, following redirects.

    Data lands in ``<dest>.part`` first and is renamed on success, so an
    interrupted download never leaves a file that looks complete.
    """

    dest_path = Path(dest)
    if dry_run:
        logger.info("Would download %s -> %s", url, str(dest_path))
        return dest_path

    s = _session(session)
    part = dest_path.with_name(dest_path.name + ".part")
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Downloading %s -> %s", url, str(dest_path))

    try:
        with s.get(url, stream=True, timeout=timeout, allow_redirects=True) as r:
            if not 200 <= r.status_code < 300:
                raise DownloadError(f"Error downloading {url}: HTTP {r.status_code}")
            total = int(r.headers.get("Content-Length") or 0)
            tracker = ProgressTracker(total, f"Downloading {dest_path.name}") if progress else None
            with part.open("wb") as f:
                for chunk in r.iter_content(chunk_size=CHUNK_BYTES):
                    if not chunk:
                        continue
                    f.write(chunk)
                    if tracker:
                        tracker.update(len(chunk))
            if tracker:
                tracker.finish()
    except (requests.RequestException, OSError) as e:
        part.unlink(missing_ok=True)
        raise DownloadError(f"Error downloading {url}: {e}") from e
    except BaseException:
        part.unlink(missing_ok=True)
        raise

    part.replace(dest_path)
    return dest_path
