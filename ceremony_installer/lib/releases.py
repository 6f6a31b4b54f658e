from __future__ import annotations

import logging
import stat
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .net import DEFAULT_TIMEOUT, download_file, fetch_text

logger = logging.getLogger(__name__)


def parse_manifest(text: str, suffix: str) -> List[str]:
    """Return manifest entries containing ``suffix`` (e.g. ``linux-amd64``).

    The manifest is a plain listing of artifact filenames, one per line.
    """

    out: List[str] = []
    for token in text.split():
        name = token.strip()
        if suffix in name and name not in out:
            out.append(name)
    return out


def fetch_manifest(
    base_url: str,
    name: str,
    suffix: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[Any] = None,
) -> List[str]:
    url = f"{base_url.rstrip('/')}/{name}"
    files = parse_manifest(fetch_text(url, timeout=timeout, session=session), suffix)
    logger.info("Manifest %s lists %d file(s) for %s", name, len(files), suffix)
    return files


def download_release_files(
    files: Iterable[str],
    *,
    base_url: str,
    dest_dir: str | Path,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[Any] = None,
    dry_run: bool = False,
) -> Tuple[List[str], List[str]]:
    """Download every file not already present in ``dest_dir``.

    Returns (downloaded, skipped).
    """

    dest = Path(dest_dir)
    downloaded: List[str] = []
    skipped: List[str] = []
    for name in files:
        target = dest / name
        if target.is_file():
            logger.info("%s already exists, skipping download", name)
            skipped.append(name)
            continue
        download_file(
            f"{base_url.rstrip('/')}/{name}",
            target,
            timeout=timeout,
            session=session,
            dry_run=dry_run,
        )
        downloaded.append(name)
    return downloaded, skipped


def release_version(filename: str) -> str:
    parts = filename.split("-")
    return parts[1] if len(parts) > 1 else ""


def _version_key(version: str) -> Tuple[int, ...]:
    key: List[int] = []
    for piece in version.split("."):
        digits = "".join(ch for ch in piece if ch.isdigit())
        key.append(int(digits) if digits else 0)
    return tuple(key)


def matching_binaries(dest_dir: str | Path, prefix: str, suffix: str) -> List[Path]:
    return sorted(p for p in Path(dest_dir).glob(f"{prefix}-*-{suffix}") if p.is_file())


def latest_binary(dest_dir: str | Path, prefix: str, suffix: str) -> Optional[Path]:
    candidates = matching_binaries(dest_dir, prefix, suffix)
    if not candidates:
        return None
    return max(candidates, key=lambda p: _version_key(release_version(p.name)))


def mark_executable(
    dest_dir: str | Path,
    prefixes: Sequence[str],
    suffix: str,
    *,
    dry_run: bool = False,
) -> List[str]:
    """chmod +x every ``<prefix>-*-<suffix>`` binary; each prefix must match."""

    changed: List[str] = []
    for prefix in prefixes:
        matches = matching_binaries(dest_dir, prefix, suffix)
        if not matches:
            if dry_run:
                logger.info("Would chmod +x %s-*-%s (no files yet)", prefix, suffix)
                continue
            raise RuntimeError(f"No {prefix}-*-{suffix} binaries found in {dest_dir}")
        for p in matches:
            if not dry_run:
                mode = p.stat().st_mode
                p.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
            changed.append(p.name)
    logger.info("Executable: %s", ", ".join(changed) or "-")
    return changed
