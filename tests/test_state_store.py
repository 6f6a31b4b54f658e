from ceremony_installer.state_store import (
    ensure_defaults,
    is_step_completed,
    load_state,
    mark_step_completed,
    record_decision,
    reset_progress,
    save_state,
)


def test_missing_state_file_loads_empty(tmp_path):
    assert load_state(str(tmp_path / "state.json")) == {}


def test_json_roundtrip_creates_parent(tmp_path):
    path = tmp_path / "nested" / "state.json"
    state = ensure_defaults({})
    mark_step_completed(state, "10_prepare_repo")

    assert save_state(str(path), state) == str(path)
    loaded = load_state(str(path))
    assert is_step_completed(loaded, "10_prepare_repo")


def test_yaml_state_by_extension(tmp_path):
    path = tmp_path / "state.yaml"
    save_state(str(path), {"platform": {"os": "linux", "arch": "amd64"}})
    assert "arch: amd64" in path.read_text(encoding="utf-8")
    assert load_state(str(path))["platform"]["os"] == "linux"


def test_mark_completed_is_idempotent():
    state = ensure_defaults({})
    mark_step_completed(state, "x")
    mark_step_completed(state, "x")
    assert state["execution"]["completed_steps"] == ["x"]


def test_reset_progress_keeps_history():
    state = ensure_defaults({})
    mark_step_completed(state, "x")
    state["execution"]["errors"].append({"step": "y", "error": "boom"})
    reset_progress(state)
    assert not is_step_completed(state, "x")
    assert state["execution"]["errors"]


def test_save_leaves_no_temp_files(tmp_path):
    save_state(str(tmp_path / "state.json"), ensure_defaults({}))
    assert [p.name for p in tmp_path.iterdir()] == ["state.json"]


def test_record_decision():
    state = ensure_defaults({})
    record_decision(state, "service", {"unit_path": "/lib/systemd/system/ceremonyclient.service"})
    assert state["execution"]["decisions"]["service"]["unit_path"].endswith("ceremonyclient.service")
