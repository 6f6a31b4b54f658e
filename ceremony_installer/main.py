from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, List, Optional

from .install_config import VARIANTS, load_install_config
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import Step, run_pipeline
from .state_store import ensure_defaults, load_state, reset_progress, save_state
from .steps import (
    DetectPlatformStep,
    DownloadBinariesStep,
    FollowLogsStep,
    InstallServiceStep,
    PatchConfigStep,
    PrepareRepoStep,
    RestoreSnapshotStep,
    SetPermissionsStep,
    StartServiceStep,
    StopServiceStep,
)

logger = logging.getLogger(__name__)


DEFAULT_STATE_PATH = "/var/lib/ceremony-installer/state.json"


def build_steps(variant: str) -> List[Step]:
    steps: List[Step] = [
        PrepareRepoStep(),
        DetectPlatformStep(),
        DownloadBinariesStep(),
        SetPermissionsStep(),
        InstallServiceStep(),
        PatchConfigStep(),
    ]
    if variant != "binary":
        steps += [
            StopServiceStep(),
            RestoreSnapshotStep(),
            StartServiceStep(),
        ]
    steps.append(FollowLogsStep())
    return steps


def run(
    *,
    variant: str = "binary",
    config_path: Optional[str] = None,
    state_path: str = DEFAULT_STATE_PATH,
    log_path: str = DEFAULT_LOG_PATH,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    resume: bool = False,
    verbose: bool = False,
    overrides: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Run the installer pipeline, persisting state for resume."""

    actual_log_path = configure_logging(log_path, verbose=verbose)
    logger.info("Starting Ceremony Client installation (variant=%s)", variant)

    cfg = load_install_config(variant, config_path, overrides)

    state = ensure_defaults(load_state(state_path))
    if not resume:
        reset_progress(state)
    state["config"] = cfg.raw
    state["execution"]["paths"] = {"log": actual_log_path, "state": state_path}

    steps = build_steps(variant)

    try:
        result = run_pipeline(
            state=state,
            steps=steps,
            start_at=start_at,
            stop_after=stop_after,
        )
        state = result.state
        state["execution"]["summary"] = {
            "ran_steps": result.ran_steps,
            "skipped_steps": result.skipped_steps,
            "seconds": round(sum(result.durations.values()), 1),
        }
        logger.info("Installation finished (%d steps run, %d skipped)", len(result.ran_steps), len(result.skipped_steps))
        return state
    except Exception as e:
        logger.error("Step %s failed: %s", state["execution"].get("current_step"), e)
        state.setdefault("execution", {}).setdefault("errors", []).append(
            {
                "step": (state.get("execution") or {}).get("current_step"),
                "error": str(e),
            }
        )
        raise
    finally:
        save_state(state_path, state)


def build_parser(prog: str = "ceremony-installer", default_variant: str = "binary") -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog=prog)
    p.add_argument("--variant", choices=VARIANTS, default=default_variant, help="Installer flavour")
    p.add_argument("--config", default=None, help="Optional YAML file overriding installer settings")
    p.add_argument("--state", default=DEFAULT_STATE_PATH, help="Path to installer state (json|yaml)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to installer log")
    p.add_argument("--start-at", default=None, help="Start at step_id (e.g. 40_install_service)")
    p.add_argument("--stop-after", default=None, help="Stop after step_id")
    p.add_argument("--resume", action="store_true", help="Skip steps completed by a previous run")
    p.add_argument("--dry-run", action="store_true", help="Log commands and downloads without running them")
    p.add_argument("--no-follow-logs", action="store_true", help="Exit instead of following the service journal")
    p.add_argument("-v", "--verbose", action="store_true", help="Show debug output on the console")
    return p


def main(argv: Optional[list[str]] = None, *, prog: str = "ceremony-installer", default_variant: str = "binary") -> int:
    args = build_parser(prog, default_variant).parse_args(argv)

    overrides: Dict[str, Any] = {}
    if args.dry_run:
        overrides["dry_run"] = True
    if args.no_follow_logs:
        overrides["follow_logs"] = False

    try:
        run(
            variant=args.variant,
            config_path=args.config,
            state_path=args.state,
            log_path=args.log,
            start_at=args.start_at,
            stop_after=args.stop_after,
            resume=bool(args.resume),
            verbose=bool(args.verbose),
            overrides=overrides,
        )
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        logger.exception("Installation failed: %s", e)
        return 1
    return 0


def main_binary(argv: Optional[list[str]] = None) -> int:
    return main(argv, prog="ceremony-install", default_variant="binary")


def main_store_zip(argv: Optional[list[str]] = None) -> int:
    return main(argv, prog="ceremony-install-store", default_variant="store-zip")


def main_store_tar(argv: Optional[list[str]] = None) -> int:
    return main(argv, prog="ceremony-install-store-tar", default_variant="store-tar")


if __name__ == "__main__":
    raise SystemExit(main())
