from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .lib.config_patch import ConfigError, ConfigPatch, patches_from_config
from .lib.git import repo_dir_name

VARIANTS = ("binary", "store-zip", "store-tar")

DEFAULT_CONFIG: Dict[str, Any] = {
    "dry_run": False,
    "home_dir": "~",
    "repo_url": "https://github.com/QuilibriumNetwork/ceremonyclient.git",
    "repo_branch": "release",
    "release_base_url": "https://releases.quilibrium.com",
    "release_manifests": ["release", "qclient-release"],
    "binary_prefixes": ["qclient", "node"],
    "release_os": None,
    "release_arch": None,
    "http_timeout": 60,
    "use_sudo": "auto",
    "service": {
        "name": "ceremonyclient",
        "description": "Ceremony Client Go App Service",
        "unit_dir": "/lib/systemd/system",
        "restart_sec": "5s",
        "environment": {"GOEXPERIMENT": "arenas"},
        # node_binary: newest downloaded node-<ver>-<os>-<arch>; autorun: the repo's autorun script
        "exec_start": "node_binary",
        "autorun_script": "release_autorun.sh",
    },
    "config_wait_seconds": 60,
    "config_patches": None,
    "snapshot": None,
    "follow_logs": True,
}

VARIANT_PRESETS: Dict[str, Dict[str, Any]] = {
    "binary": {},
    "store-zip": {
        "service": {"exec_start": "autorun"},
        "snapshot": {
            "url": (
                "https://www.dropbox.com/scl/fi/0cqbisxh4o4iqtb6r6qtj/frame.zip"
                "?rlkey=dg9yxo6y80q0n22elbeirnr1r&st=7wqll09t&dl=1"
            ),
            "filename": "frame.zip",
            "progress": False,
        },
    },
    "store-tar": {
        "service": {"exec_start": "autorun"},
        "snapshot": {
            "url": (
                "https://www.dropbox.com/scl/fi/rrmr9zi9qwx0vy69vq7ak/mainnet_store_frame_140893.tar.xz"
                "?rlkey=849ovy6uck7ohcrc2e6tuh3cy&st=bndhgr9d&dl=1"
            ),
            "filename": "frame.tar.xz",
            "progress": True,
        },
    },
}


def deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(out.get(key), dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


@dataclass(frozen=True)
class InstallConfig:
    raw: Dict[str, Any]

    @classmethod
    def from_state(cls, state: Dict[str, Any]) -> "InstallConfig":
        return cls(raw=deep_merge(DEFAULT_CONFIG, state.get("config") or {}))

    @property
    def variant(self) -> str:
        return str(self.raw.get("variant") or "binary")

    @property
    def dry_run(self) -> bool:
        return bool(self.raw.get("dry_run", False))

    @property
    def use_sudo(self) -> Any:
        return self.raw.get("use_sudo", "auto")

    @property
    def http_timeout(self) -> float:
        return float(self.raw.get("http_timeout") or 60)

    @property
    def home_dir(self) -> Path:
        return Path(str(self.raw.get("home_dir") or "~")).expanduser()

    @property
    def repo_url(self) -> str:
        return str(self.raw["repo_url"])

    @property
    def repo_branch(self) -> str:
        return str(self.raw.get("repo_branch") or "release")

    @property
    def repo_dir(self) -> Path:
        return self.home_dir / repo_dir_name(self.repo_url)

    @property
    def node_dir(self) -> Path:
        return self.repo_dir / "node"

    @property
    def node_config_dir(self) -> Path:
        return self.node_dir / ".config"

    @property
    def node_config_file(self) -> Path:
        return self.node_config_dir / "config.yml"

    @property
    def store_dir(self) -> Path:
        return self.node_config_dir / "store"

    @property
    def release_base_url(self) -> str:
        return str(self.raw["release_base_url"])

    @property
    def release_manifests(self) -> List[str]:
        return [str(m) for m in (self.raw.get("release_manifests") or [])]

    @property
    def binary_prefixes(self) -> List[str]:
        return [str(p) for p in (self.raw.get("binary_prefixes") or [])]

    @property
    def service(self) -> Dict[str, Any]:
        return dict(self.raw.get("service") or {})

    @property
    def service_name(self) -> str:
        return str(self.service.get("name") or "ceremonyclient")

    @property
    def config_wait_seconds(self) -> int:
        return int(self.raw.get("config_wait_seconds") or 0)

    @property
    def config_patches(self) -> List[ConfigPatch]:
        return patches_from_config(self.raw.get("config_patches"))

    @property
    def snapshot(self) -> Optional[Dict[str, Any]]:
        snap = self.raw.get("snapshot")
        return dict(snap) if snap else None

    @property
    def follow_logs(self) -> bool:
        return bool(self.raw.get("follow_logs", True))


def load_install_config(
    variant: str = "binary",
    path: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> InstallConfig:
    """Defaults, then the variant preset, then an optional YAML file, then CLI overrides."""

    if variant not in VARIANT_PRESETS:
        raise ConfigError(f"Unknown variant {variant!r} (expected one of {', '.join(VARIANTS)})")

    raw = deep_merge(DEFAULT_CONFIG, VARIANT_PRESETS[variant])
    raw["variant"] = variant

    if path:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(path)
        if p.suffix.lower() not in {".yaml", ".yml"}:
            raise ConfigError("installer config must be YAML")
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping/object")
        raw = deep_merge(raw, data)

    if overrides:
        raw = deep_merge(raw, overrides)

    cfg = InstallConfig(raw=raw)
    # Surface malformed patch lists before anything runs.
    _ = cfg.config_patches
    return cfg
