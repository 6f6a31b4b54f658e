from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .command import run_cmd

logger = logging.getLogger(__name__)


def repo_dir_name(repo_url: str) -> str:
    """Directory name ``git clone`` picks for a URL."""
    name = repo_url.rstrip("/").rsplit("/", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name


def prepare_checkout(repo_url: str, dest: str | Path, *, branch: str, dry_run: bool = False) -> Path:
    """Fresh clone of ``repo_url`` into ``dest`` on ``branch``.

    Any previous checkout at ``dest`` is removed first.
    """

    d = Path(dest)
    if d.exists():
        logger.info("Found existing %s directory. Removing...", d.name)
        if not dry_run:
            shutil.rmtree(d)

    logger.info("Cloning %s", repo_url)
    run_cmd(["git", "clone", repo_url, str(d)], dry_run=dry_run)
    run_cmd(["git", "pull"], cwd=str(d), dry_run=dry_run)
    run_cmd(["git", "checkout", branch], cwd=str(d), dry_run=dry_run)
    return d
