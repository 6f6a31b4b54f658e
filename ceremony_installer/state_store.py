from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

STATE_VERSION = 1


def _is_yaml(path: Path) -> bool:
    return path.suffix.lower() in {".yaml", ".yml"}


def load_state(path: str) -> Dict[str, Any]:
    """Read a previous run's state; a missing file means a fresh install."""

    p = Path(path)
    if not p.exists():
        return {}

    text = p.read_text(encoding="utf-8")
    data = (yaml.safe_load(text) or {}) if _is_yaml(p) else json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: state must be a mapping, got {type(data).__name__}")
    return data


def _dump(p: Path, state: Dict[str, Any]) -> str:
    if _is_yaml(p):
        return yaml.safe_dump(state, sort_keys=False)
    return json.dumps(state, indent=2, sort_keys=True, default=str) + "\n"


def _write_atomic(p: Path, text: str) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", dir=str(p.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.replace(tmp, p)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def save_state(path: str, state: Dict[str, Any]) -> str:
    """Persist state and return where it went.

    Without root the default /var/lib location is not writable; the file then
    lands in the working directory under the same name.
    """

    p = Path(path)
    text = _dump(p, state)
    try:
        _write_atomic(p, text)
        return str(p)
    except PermissionError:
        fallback = Path.cwd() / p.name
        logger.warning("State path %s not writable; saving to %s", p, fallback)
        _write_atomic(fallback, text)
        return str(fallback)


def ensure_defaults(state: Dict[str, Any]) -> Dict[str, Any]:
    for key, empty in (("config", {}), ("platform", {}), ("execution", {})):
        state.setdefault(key, empty)
    state.setdefault("version", STATE_VERSION)

    exe = state["execution"]
    exe.setdefault("current_step", None)
    exe.setdefault("completed_steps", [])
    exe.setdefault("decisions", {})
    exe.setdefault("errors", [])
    return state


def reset_progress(state: Dict[str, Any]) -> Dict[str, Any]:
    """Start the step list over; decisions and errors from earlier runs stay."""

    exe = state.setdefault("execution", {})
    exe.update(completed_steps=[], current_step=None)
    return state


def record_decision(state: Dict[str, Any], key: str, value: Any) -> None:
    state.setdefault("execution", {}).setdefault("decisions", {})[key] = value
    logger.debug("decision %s = %r", key, value)


def mark_step_completed(state: Dict[str, Any], step_id: str) -> None:
    done = state.setdefault("execution", {}).setdefault("completed_steps", [])
    if step_id not in done:
        done.append(step_id)


def is_step_completed(state: Dict[str, Any], step_id: str) -> bool:
    return step_id in ((state.get("execution") or {}).get("completed_steps") or [])
