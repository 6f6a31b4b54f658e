from __future__ import annotations

import logging
from typing import Any, Dict

from ..install_config import InstallConfig
from ..lib.systemd import service_action

logger = logging.getLogger(__name__)


class StartServiceStep:
    step_id = "80_start_service"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig.from_state(state)
        logger.info("Starting %s service...", cfg.service_name)
        service_action(cfg.service_name, "start", use_sudo=cfg.use_sudo, dry_run=cfg.dry_run)
        return state
