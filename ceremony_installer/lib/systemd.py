from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Callable, Dict, Optional

from .command import CommandError, needs_sudo, run_cmd, spawn_cmd, with_privilege
from .progress import wait_with_spinner

logger = logging.getLogger(__name__)

DEFAULT_UNIT_DIR = "/lib/systemd/system"


@dataclass(frozen=True)
class ServiceUnit:
    name: str
    description: str
    working_directory: str
    exec_start: str
    environment: Dict[str, str] = field(default_factory=dict)
    restart_sec: str = "5s"
    wanted_by: str = "multi-user.target"

    @property
    def filename(self) -> str:
        return f"{self.name}.service"

    def render(self) -> str:
        lines = [
            "[Unit]",
            f"Description={self.description}",
            "",
            "[Service]",
            "Type=simple",
            "Restart=always",
            f"RestartSec={self.restart_sec}",
            f"WorkingDirectory={self.working_directory}",
        ]
        for key, value in self.environment.items():
            lines.append(f"Environment={key}={value}")
        lines += [
            f"ExecStart={self.exec_start}",
            "",
            "[Install]",
            f"WantedBy={self.wanted_by}",
        ]
        return "\n".join(lines) + "\n"


def install_unit(
    unit: ServiceUnit,
    *,
    unit_dir: str = DEFAULT_UNIT_DIR,
    use_sudo: object = "auto",
    dry_run: bool = False,
) -> Path:
    dst = Path(unit_dir) / unit.filename
    contents = unit.render()
    if dry_run:
        logger.info("Would write %s:\n%s", str(dst), contents)
        return dst

    if needs_sudo(use_sudo):
        # Unit dir is root-owned; stage in /tmp and install with sudo.
        fd, tmp = tempfile.mkstemp(prefix=f"{unit.name}-", suffix=".service")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(contents)
            run_cmd(with_privilege(["install", "-m", "0644", tmp, str(dst)], True))
        finally:
            Path(tmp).unlink(missing_ok=True)
    else:
        dst.parent.mkdir(parents=True, exist_ok=True)
        dst.write_text(contents, encoding="utf-8")

    logger.info("Wrote service unit %s", str(dst))
    return dst


def daemon_reload(*, use_sudo: object = "auto", dry_run: bool = False) -> None:
    run_cmd(with_privilege(["systemctl", "daemon-reload"], use_sudo), dry_run=dry_run)


def service_action(name: str, action: str, *, use_sudo: object = "auto", dry_run: bool = False) -> None:
    if action not in {"start", "stop", "restart"}:
        raise ValueError(f"Unsupported service action: {action}")
    run_cmd(with_privilege(["systemctl", action, f"{name}.service"], use_sudo), dry_run=dry_run)


def stop_service_with_spinner(
    name: str,
    *,
    use_sudo: object = "auto",
    stream: Optional[IO[str]] = None,
    sleep: Optional[Callable[[float], None]] = None,
    dry_run: bool = False,
) -> None:
    """Stop the service in the background while drawing a spinner."""

    argv = with_privilege(["systemctl", "stop", f"{name}.service"], use_sudo)
    proc = spawn_cmd(argv, dry_run=dry_run)
    if proc is None:
        return
    kwargs: Dict[str, Any] = {"stream": stream}
    if sleep is not None:
        kwargs["sleep"] = sleep
    rc = wait_with_spinner(proc, "Stopping service", **kwargs)
    if rc != 0:
        raise CommandError(argv, rc, f"Failed to stop {name} service")
    logger.info("Service %s stopped", name)


def follow_journal(name: str, *, use_sudo: object = "auto", dry_run: bool = False) -> None:
    """Attach to the service journal until interrupted."""

    argv = with_privilege(
        ["journalctl", "-u", f"{name}.service", "-f", "--no-hostname", "-o", "cat"],
        use_sudo,
    )
    try:
        run_cmd(argv, check=False, capture=False, dry_run=dry_run)
    except KeyboardInterrupt:
        logger.info("Stopped following %s logs", name)
