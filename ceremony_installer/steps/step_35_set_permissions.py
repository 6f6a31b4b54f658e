from __future__ import annotations

from typing import Any, Dict

from ..install_config import InstallConfig
from ..lib.releases import mark_executable
from .step_30_download_binaries import platform_suffix


class SetPermissionsStep:
    step_id = "35_set_permissions"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig.from_state(state)
        changed = mark_executable(cfg.node_dir, cfg.binary_prefixes, platform_suffix(state), dry_run=cfg.dry_run)
        state.setdefault("execution", {})["executables"] = changed
        return state
