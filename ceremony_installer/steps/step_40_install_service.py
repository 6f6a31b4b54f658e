from __future__ import annotations

import logging
from typing import Any, Dict

from ..install_config import InstallConfig
from ..lib.releases import latest_binary
from ..lib.systemd import ServiceUnit, daemon_reload, install_unit, service_action
from ..state_store import record_decision
from .step_30_download_binaries import platform_suffix

logger = logging.getLogger(__name__)


def resolve_exec_start(cfg: InstallConfig, suffix: str) -> str:
    svc = cfg.service
    mode = str(svc.get("exec_start") or "node_binary")

    if mode == "node_binary":
        binary = latest_binary(cfg.node_dir, "node", suffix)
        if binary is None:
            if cfg.dry_run:
                return str(cfg.node_dir / f"node-<version>-{suffix}")
            raise RuntimeError(f"No node-*-{suffix} binary in {cfg.node_dir}")
        return str(binary)

    if mode == "autorun":
        script = cfg.node_dir / str(svc.get("autorun_script") or "release_autorun.sh")
        if not cfg.dry_run and not script.exists():
            logger.warning("Autorun script %s not found; the service will fail until it exists", str(script))
        return str(script)

    # Anything else is an explicit command line.
    return mode


class InstallServiceStep:
    step_id = "40_install_service"

    def run(self, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = InstallConfig.from_state(state)
        svc = cfg.service

        unit = ServiceUnit(
            name=cfg.service_name,
            description=str(svc.get("description") or "Ceremony Client Go App Service"),
            working_directory=str(cfg.node_dir),
            exec_start=resolve_exec_start(cfg, platform_suffix(state)),
            environment={str(k): str(v) for k, v in (svc.get("environment") or {}).items()},
            restart_sec=str(svc.get("restart_sec") or "5s"),
        )

        path = install_unit(
            unit,
            unit_dir=str(svc.get("unit_dir") or "/lib/systemd/system"),
            use_sudo=cfg.use_sudo,
            dry_run=cfg.dry_run,
        )

        logger.info("Reloading systemd daemon and starting service...")
        daemon_reload(use_sudo=cfg.use_sudo, dry_run=cfg.dry_run)
        service_action(cfg.service_name, "restart", use_sudo=cfg.use_sudo, dry_run=cfg.dry_run)

        record_decision(state, "service", {"unit_path": str(path), "exec_start": unit.exec_start})
        return state
