from __future__ import annotations

import logging
import platform
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleasePlatform:
    os: str
    arch: str

    @property
    def suffix(self) -> str:
        """Substring used to pick artifacts out of a release manifest."""
        return f"{self.os}-{self.arch}"


def normalize_arch(machine: str) -> str:
    m = machine.lower()
    if m in {"aarch64", "arm64"}:
        return "arm64"
    return "amd64"


def detect_release_platform(
    system: Optional[str] = None,
    machine: Optional[str] = None,
    *,
    forced_os: Optional[str] = None,
    forced_arch: Optional[str] = None,
) -> ReleasePlatform:
    """Map the running host onto the os/arch pair used by the release host.

    Linux hosts get linux-arm64 on aarch64 and linux-amd64 otherwise.
    Anything else is treated as Apple silicon (darwin-arm64), the only other
    platform the releases are published for.
    """

    system = (system if system is not None else platform.system()).lower()
    machine = machine if machine is not None else platform.machine()

    if system == "linux":
        rp = ReleasePlatform(os="linux", arch=normalize_arch(machine))
    else:
        rp = ReleasePlatform(os="darwin", arch="arm64")

    if forced_os or forced_arch:
        rp = ReleasePlatform(os=forced_os or rp.os, arch=forced_arch or rp.arch)
        logger.info("Release platform forced by config: %s", rp.suffix)

    return rp
