import json

import pytest

from ceremony_installer import main as main_mod
from ceremony_installer.lib import git
from ceremony_installer.lib.command import CommandError
from ceremony_installer.main import build_steps, main


def test_binary_variant_has_no_snapshot_steps():
    ids = [s.step_id for s in build_steps("binary")]
    assert ids == [
        "10_prepare_repo",
        "20_detect_platform",
        "30_download_binaries",
        "35_set_permissions",
        "40_install_service",
        "50_patch_config",
        "90_follow_logs",
    ]


@pytest.mark.parametrize("variant", ["store-zip", "store-tar"])
def test_store_variants_stop_restore_start(variant):
    ids = [s.step_id for s in build_steps(variant)]
    assert ids[6:] == ["60_stop_service", "70_restore_snapshot", "80_start_service", "90_follow_logs"]


class _Boom:
    step_id = "10_boom"

    def run(self, state):
        raise RuntimeError("clone failed")


class _Ok:
    step_id = "20_ok"

    def run(self, state):
        state.setdefault("execution", {})["touched"] = True
        return state


def _paths(tmp_path):
    return ["--state", str(tmp_path / "state.json"), "--log", str(tmp_path / "install.log")]


def test_failure_exits_1_and_records_error(tmp_path, monkeypatch):
    monkeypatch.setattr(main_mod, "build_steps", lambda variant: [_Boom(), _Ok()])

    assert main(_paths(tmp_path)) == 1

    state = json.loads((tmp_path / "state.json").read_text(encoding="utf-8"))
    assert state["execution"]["errors"][-1] == {"step": "10_boom", "error": "clone failed"}
    assert "touched" not in state["execution"]


def test_success_exits_0_and_saves_summary(tmp_path, monkeypatch):
    monkeypatch.setattr(main_mod, "build_steps", lambda variant: [_Ok()])

    assert main(["--variant", "store-tar", "--no-follow-logs", *_paths(tmp_path)]) == 0

    state = json.loads((tmp_path / "state.json").read_text(encoding="utf-8"))
    assert state["execution"]["summary"]["ran_steps"] == ["20_ok"]
    assert state["config"]["variant"] == "store-tar"
    assert state["config"]["follow_logs"] is False


def test_resume_skips_completed_steps(tmp_path, monkeypatch):
    monkeypatch.setattr(main_mod, "build_steps", lambda variant: [_Ok()])
    assert main(_paths(tmp_path)) == 0
    assert main(["--resume", *_paths(tmp_path)]) == 0

    state = json.loads((tmp_path / "state.json").read_text(encoding="utf-8"))
    assert state["execution"]["summary"]["skipped_steps"] == ["20_ok"]


def test_bad_config_file_exits_1(tmp_path):
    assert main(["--config", str(tmp_path / "missing.yaml"), *_paths(tmp_path)]) == 1


def test_dry_run_through_platform_detection(tmp_path, monkeypatch):
    cfg = tmp_path / "installer.yaml"
    cfg.write_text(f"home_dir: {tmp_path}\nrelease_os: linux\nrelease_arch: amd64\n", encoding="utf-8")

    rc = main(["--dry-run", "--config", str(cfg), "--stop-after", "20_detect_platform", *_paths(tmp_path)])

    assert rc == 0
    state = json.loads((tmp_path / "state.json").read_text(encoding="utf-8"))
    assert state["platform"]["suffix"] == "linux-amd64"
    assert state["execution"]["completed_steps"] == ["10_prepare_repo", "20_detect_platform"]
    assert not (tmp_path / "ceremonyclient").exists()


def test_failing_git_command_exits_1_and_records_step(tmp_path, monkeypatch):
    def failing_git(argv, **kwargs):
        raise CommandError(argv, 128, "fatal: unable to access repository")

    monkeypatch.setattr(git, "run_cmd", failing_git)
    cfg = tmp_path / "installer.yaml"
    cfg.write_text(f"home_dir: {tmp_path / 'home'}\nuse_sudo: false\n", encoding="utf-8")

    assert main(["--config", str(cfg), "--no-follow-logs", *_paths(tmp_path)]) == 1

    state = json.loads((tmp_path / "state.json").read_text(encoding="utf-8"))
    err = state["execution"]["errors"][-1]
    assert err["step"] == "10_prepare_repo"
    assert "Command failed (128)" in err["error"]
    assert state["execution"]["completed_steps"] == []


def test_failure_before_pipeline_logs_traceback(tmp_path, caplog):
    assert main(["--config", str(tmp_path / "missing.yaml"), *_paths(tmp_path)]) == 1
    failures = [r for r in caplog.records if r.getMessage().startswith("Installation failed")]
    assert failures and failures[-1].exc_info is not None
