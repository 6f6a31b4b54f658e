from __future__ import annotations

import logging
from typing import Any, Dict, List

from ..install_config import InstallConfig
from ..lib.releases import download_release_files, fetch_manifest

logger = logging.getLogger(__name__)


def platform_suffix(state: Dict[str, Any]) -> str:
    suffix = (state.get("platform") or {}).get("suffix")
    if not suffix:
        raise RuntimeError("platform.suffix missing; run platform detection first")
    return str(suffix)


class DownloadBinariesStep:
    step_id = "30_download_binaries"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig.from_state(state)
        suffix = platform_suffix(state)

        downloaded: List[str] = []
        skipped: List[str] = []
        for manifest in cfg.release_manifests:
            logger.info("Fetching %s files...", manifest)
            files = fetch_manifest(cfg.release_base_url, manifest, suffix, timeout=cfg.http_timeout)
            if not files:
                logger.warning("Manifest %s has no entries for %s", manifest, suffix)
            d, s = download_release_files(
                files,
                base_url=cfg.release_base_url,
                dest_dir=cfg.node_dir,
                timeout=cfg.http_timeout,
                dry_run=cfg.dry_run,
            )
            downloaded.extend(d)
            skipped.extend(s)

        state.setdefault("execution", {})["downloads"] = {"downloaded": downloaded, "skipped": skipped}
        logger.info("Release files: %d downloaded, %d already present", len(downloaded), len(skipped))
        return state
