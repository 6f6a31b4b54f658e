from __future__ import annotations

import logging
import shutil
from typing import Any, Dict

from ..install_config import InstallConfig
from ..lib.archive import archive_format, extract_archive
from ..lib.net import download_file
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class RestoreSnapshotStep:
    step_id = "70_restore_snapshot"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig.from_state(state)
        snap = cfg.snapshot
        if not snap or not snap.get("url"):
            raise RuntimeError("snapshot.url missing from config")

        config_dir = cfg.node_config_dir
        if not cfg.dry_run and not config_dir.is_dir():
            raise RuntimeError(f"Node config directory missing: {config_dir}")

        if cfg.store_dir.exists():
            logger.info("Removing existing store directory %s", str(cfg.store_dir))
            if not cfg.dry_run:
                shutil.rmtree(cfg.store_dir)

        archive = config_dir / str(snap.get("filename") or "frame.zip")
        archive_format(archive)
        progress = bool(snap.get("progress", True))

        download_file(
            str(snap["url"]),
            archive,
            timeout=cfg.http_timeout,
            progress=progress,
            dry_run=cfg.dry_run,
        )
        count = extract_archive(archive, config_dir, progress=progress, dry_run=cfg.dry_run)

        if not cfg.dry_run:
            try:
                archive.unlink()
            except OSError as e:
                logger.warning("Failed to remove %s: %s", archive.name, e)

        record_decision(state, "snapshot", {"archive": archive.name, "entries": count})
        return state
