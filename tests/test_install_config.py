from pathlib import Path

import pytest

from ceremony_installer.install_config import InstallConfig, load_install_config
from ceremony_installer.lib.config_patch import ConfigError, ConfigPatch


def test_binary_variant_defaults(tmp_path):
    cfg = load_install_config("binary", overrides={"home_dir": str(tmp_path)})
    assert cfg.variant == "binary"
    assert cfg.repo_dir == tmp_path / "ceremonyclient"
    assert cfg.node_dir == tmp_path / "ceremonyclient" / "node"
    assert cfg.node_config_file == tmp_path / "ceremonyclient" / "node" / ".config" / "config.yml"
    assert cfg.store_dir == tmp_path / "ceremonyclient" / "node" / ".config" / "store"
    assert cfg.release_manifests == ["release", "qclient-release"]
    assert cfg.service["exec_start"] == "node_binary"
    assert cfg.snapshot is None
    assert cfg.config_wait_seconds == 60


def test_store_variants_use_autorun_and_snapshot():
    zip_cfg = load_install_config("store-zip")
    tar_cfg = load_install_config("store-tar")
    assert zip_cfg.service["exec_start"] == "autorun"
    assert zip_cfg.service["environment"] == {"GOEXPERIMENT": "arenas"}
    assert zip_cfg.snapshot["filename"] == "frame.zip"
    assert tar_cfg.snapshot["filename"] == "frame.tar.xz"
    assert tar_cfg.snapshot["progress"] is True


def test_yaml_file_merges_nested_sections(tmp_path):
    path = tmp_path / "installer.yaml"
    path.write_text(
        "service:\n"
        "  name: qnode\n"
        "config_wait_seconds: 5\n"
        "config_patches:\n"
        "  - find: 'maxFrames: -1'\n"
        "    replace: 'maxFrames: 500'\n",
        encoding="utf-8",
    )
    cfg = load_install_config("store-tar", str(path), overrides={"follow_logs": False})
    assert cfg.service_name == "qnode"
    assert cfg.service["exec_start"] == "autorun"
    assert cfg.config_wait_seconds == 5
    assert cfg.config_patches == [ConfigPatch("maxFrames: -1", "maxFrames: 500")]
    assert cfg.follow_logs is False


def test_bad_inputs(tmp_path):
    with pytest.raises(ConfigError):
        load_install_config("nightly")
    with pytest.raises(FileNotFoundError):
        load_install_config("binary", str(tmp_path / "missing.yaml"))
    not_mapping = tmp_path / "list.yaml"
    not_mapping.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_install_config("binary", str(not_mapping))
    with pytest.raises(ConfigError):
        load_install_config("binary", overrides={"config_patches": [{"replace": "x"}]})


def test_from_state_fills_defaults():
    cfg = InstallConfig.from_state({"config": {"home_dir": "/srv"}})
    assert cfg.repo_dir == Path("/srv/ceremonyclient")
    assert cfg.service_name == "ceremonyclient"
