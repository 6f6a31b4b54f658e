from __future__ import annotations

import logging
from typing import Any, Dict

from ..install_config import InstallConfig
from ..lib.platform_detect import detect_release_platform

logger = logging.getLogger(__name__)


class DetectPlatformStep:
    step_id = "20_detect_platform"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig.from_state(state)

        rp = detect_release_platform(
            forced_os=cfg.raw.get("release_os"),
            forced_arch=cfg.raw.get("release_arch"),
        )
        state["platform"] = {"os": rp.os, "arch": rp.arch, "suffix": rp.suffix}
        logger.info("Detected OS: %s, Architecture: %s", rp.os, rp.arch)
        return state
