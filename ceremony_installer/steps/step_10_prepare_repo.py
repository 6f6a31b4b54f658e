from __future__ import annotations

import logging
from typing import Any, Dict

from ..install_config import InstallConfig
from ..lib.git import prepare_checkout

logger = logging.getLogger(__name__)


class PrepareRepoStep:
    step_id = "10_prepare_repo"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig.from_state(state)

        repo = prepare_checkout(cfg.repo_url, cfg.repo_dir, branch=cfg.repo_branch, dry_run=cfg.dry_run)
        if not cfg.dry_run and not cfg.node_dir.is_dir():
            raise RuntimeError(f"Checkout has no node directory: {cfg.node_dir}")

        paths = state.setdefault("execution", {}).setdefault("paths", {})
        paths["repo_dir"] = str(repo)
        paths["node_dir"] = str(cfg.node_dir)
        logger.info("Source tree ready at %s (%s)", str(repo), cfg.repo_branch)
        return state
