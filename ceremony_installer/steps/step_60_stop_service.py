from __future__ import annotations

import logging
from typing import Any, Dict

from ..install_config import InstallConfig
from ..lib.systemd import stop_service_with_spinner

logger = logging.getLogger(__name__)


class StopServiceStep:
    step_id = "60_stop_service"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig.from_state(state)
        # The store directory is held open by the running node.
        stop_service_with_spinner(cfg.service_name, use_sudo=cfg.use_sudo, dry_run=cfg.dry_run)
        return state
