from __future__ import annotations

import logging
from typing import Any, Dict

from ..install_config import InstallConfig
from ..lib.config_patch import apply_patches
from ..lib.progress import countdown
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class PatchConfigStep:
    step_id = "50_patch_config"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig.from_state(state)

        # The node writes its config.yml on first start.
        if cfg.config_wait_seconds > 0 and not cfg.dry_run:
            logger.info("Waiting for config file to be created...")
            countdown(cfg.config_wait_seconds)

        report = apply_patches(cfg.node_config_file, cfg.config_patches, dry_run=cfg.dry_run)
        record_decision(state, "config_patch", report.as_dict())
        return state
