from __future__ import annotations

import logging
import lzma
import tarfile
import zipfile
from pathlib import Path
from typing import Any, Dict

from .progress import ProgressReader, ProgressTracker

logger = logging.getLogger(__name__)


class ExtractError(RuntimeError):
    pass


def archive_format(path: str | Path) -> str:
    name = Path(path).name.lower()
    if name.endswith(".zip"):
        return "zip"
    if name.endswith((".tar.xz", ".txz")):
        return "tar.xz"
    raise ExtractError(f"Unsupported archive type: {path}")


def _inside(path: Path, dest: Path) -> bool:
    try:
        path.resolve().relative_to(dest)
    except ValueError:
        return False
    return True


def _check_member(name: str, dest: Path) -> None:
    if not _inside(dest / name, dest):
        raise ExtractError(f"Archive member escapes destination: {name}")


def _check_link(member: tarfile.TarInfo, dest: Path) -> None:
    # Symlinks resolve from the member's directory, hard links from the archive root.
    if member.issym():
        target = dest / Path(member.name).parent / member.linkname
    elif member.islnk():
        target = dest / member.linkname
    else:
        return
    if not _inside(target, dest):
        raise ExtractError(f"Archive link escapes destination: {member.name} -> {member.linkname}")


def _extract_zip(archive: Path, dest: Path, *, progress: bool) -> int:
    with zipfile.ZipFile(archive) as zf:
        infos = zf.infolist()
        tracker = ProgressTracker(sum(i.compress_size for i in infos), f"Extracting {archive.name}")
        for info in infos:
            _check_member(info.filename, dest)
            if not progress:
                logger.info("inflating: %s", info.filename)
            zf.extract(info, path=dest)
            if progress:
                tracker.update(info.compress_size)
        if progress:
            tracker.finish()
        return len(infos)


def _extract_tar_xz(archive: Path, dest: Path, *, progress: bool) -> int:
    kwargs: Dict[str, Any] = {}
    if hasattr(tarfile, "data_filter"):
        kwargs["filter"] = "data"

    count = 0
    with archive.open("rb") as raw:
        tracker = ProgressTracker(archive.stat().st_size, f"Extracting {archive.name}")
        src = ProgressReader(raw, tracker) if progress else raw
        # Stream mode: strictly sequential reads so progress tracks the compressed input.
        with tarfile.open(fileobj=src, mode="r|xz") as tar:
            for member in tar:
                _check_member(member.name, dest)
                _check_link(member, dest)
                if not progress:
                    logger.info("x %s", member.name)
                tar.extract(member, path=dest, **kwargs)
                count += 1
        if progress:
            tracker.finish()
    return count


def extract_archive(archive: str | Path, dest: str | Path, *, progress: bool = True, dry_run: bool = False) -> int:
    """Extract a zip or tar.xz snapshot into ``dest``; return member count.

    On failure the archive is deleted and ExtractError raised. Whatever was
    already extracted stays in place.
    """

    a = Path(archive)
    d = Path(dest)
    fmt = archive_format(a)
    if dry_run:
        logger.info("Would extract %s -> %s", str(a), str(d))
        return 0

    d.mkdir(parents=True, exist_ok=True)
    d = d.resolve()
    logger.info("Extracting %s (%s) into %s", a.name, fmt, str(d))
    try:
        if fmt == "zip":
            n = _extract_zip(a, d, progress=progress)
        else:
            n = _extract_tar_xz(a, d, progress=progress)
    except ExtractError:
        a.unlink(missing_ok=True)
        raise
    except (OSError, EOFError, lzma.LZMAError, tarfile.TarError, zipfile.BadZipFile, ValueError) as e:
        a.unlink(missing_ok=True)
        raise ExtractError(f"Failed to extract {a.name}: {e}") from e

    logger.info("Extracted %d entries from %s", n, a.name)
    return n
