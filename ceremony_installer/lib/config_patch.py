from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Sequence

import yaml

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class ConfigPatch:
    find: str
    replace: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "ConfigPatch":
        find = str(raw.get("find") or "")
        if not find:
            raise ConfigError(f"config patch needs a non-empty 'find': {dict(raw)}")
        return cls(find=find, replace=str(raw.get("replace") or ""))


DEFAULT_PATCHES = (
    ConfigPatch("maxFrames: -1", "maxFrames: 1000"),
    ConfigPatch('listenGrpcMultiaddr: ""', 'listenGrpcMultiaddr: "/ip4/127.0.0.1/tcp/8337"'),
    ConfigPatch('listenRESTMultiaddr: ""', 'listenRESTMultiaddr: "/ip4/127.0.0.1/tcp/8338"'),
)


@dataclass
class PatchReport:
    path: str
    missing: bool = False
    applied: List[str] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "path": self.path,
            "missing": self.missing,
            "applied": list(self.applied),
            "unmatched": list(self.unmatched),
        }


def patch_bytes(data: bytes, patch: ConfigPatch) -> tuple[bytes, int]:
    """Replace the first occurrence of ``patch.find`` on every line.

    Works on raw bytes so line endings and undecodable bytes pass through
    untouched, the way ``sed -i`` does.
    """

    find = patch.find.encode("utf-8")
    replace = patch.replace.encode("utf-8")
    count = 0
    out: List[bytes] = []
    for line in data.split(b"\n"):
        if find in line:
            line = line.replace(find, replace, 1)
            count += 1
        out.append(line)
    return b"\n".join(out), count


def patch_text(text: str, patch: ConfigPatch) -> tuple[str, int]:
    data, count = patch_bytes(text.encode("utf-8", "surrogateescape"), patch)
    return data.decode("utf-8", "surrogateescape"), count


def apply_patches(path: str | Path, patches: Sequence[ConfigPatch] = DEFAULT_PATCHES, *, dry_run: bool = False) -> PatchReport:
    p = Path(path)
    report = PatchReport(path=str(p))
    if not p.is_file():
        report.missing = True
        logger.warning("Config file not found at %s", str(p))
        return report

    data = p.read_bytes()
    for patch in patches:
        data, n = patch_bytes(data, patch)
        (report.applied if n else report.unmatched).append(patch.find)

    if dry_run:
        logger.info("Would patch %s (%d change(s))", str(p), len(report.applied))
        return report

    if report.applied:
        p.write_bytes(data)

    try:
        yaml.safe_load(data.decode("utf-8", "replace"))
    except yaml.YAMLError as e:
        logger.warning("Patched config %s no longer parses as YAML: %s", str(p), e)

    if report.unmatched:
        logger.info("Config keys left untouched (pattern not found): %s", ", ".join(report.unmatched))
    logger.info("Config file updated: %s", str(p))
    return report


def patches_from_config(raw: Iterable[Any] | None) -> List[ConfigPatch]:
    if raw is None:
        return list(DEFAULT_PATCHES)
    out: List[ConfigPatch] = []
    for item in raw:
        if not isinstance(item, Mapping):
            raise ConfigError("config_patches entries must be mappings with find/replace")
        out.append(ConfigPatch.from_mapping(item))
    return out
