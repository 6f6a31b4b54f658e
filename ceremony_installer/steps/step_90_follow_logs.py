from __future__ import annotations

import logging
from typing import Any, Dict

from ..install_config import InstallConfig
from ..lib.systemd import follow_journal

logger = logging.getLogger(__name__)


class FollowLogsStep:
    step_id = "90_follow_logs"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig.from_state(state)
        if not cfg.follow_logs:
            logger.info("Installation completed; not following logs")
            return state
        logger.info("Installation completed! Following service logs...")
        follow_journal(cfg.service_name, use_sudo=cfg.use_sudo, dry_run=cfg.dry_run)
        return state
