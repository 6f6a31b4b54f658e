import io

import pytest

from _fakes import FakeProc
from ceremony_installer.lib import systemd
from ceremony_installer.lib.command import CmdResult, CommandError
from ceremony_installer.lib.systemd import ServiceUnit, install_unit

EXPECTED_UNIT = """\
[Unit]
Description=Ceremony Client Go App Service

[Service]
Type=simple
Restart=always
RestartSec=5s
WorkingDirectory=/root/ceremonyclient/node
Environment=GOEXPERIMENT=arenas
ExecStart=/root/ceremonyclient/node/release_autorun.sh

[Install]
WantedBy=multi-user.target
"""


def _unit() -> ServiceUnit:
    return ServiceUnit(
        name="ceremonyclient",
        description="Ceremony Client Go App Service",
        working_directory="/root/ceremonyclient/node",
        exec_start="/root/ceremonyclient/node/release_autorun.sh",
        environment={"GOEXPERIMENT": "arenas"},
    )


@pytest.fixture
def recorded(monkeypatch):
    calls = []

    def fake_run_cmd(argv, **kwargs):
        calls.append((list(argv), kwargs))
        return CmdResult(argv=list(argv), returncode=0, stdout="", stderr="")

    monkeypatch.setattr(systemd, "run_cmd", fake_run_cmd)
    return calls


def test_render_matches_unit_layout():
    assert _unit().render() == EXPECTED_UNIT


def test_install_unit_writes_file(tmp_path):
    path = install_unit(_unit(), unit_dir=str(tmp_path), use_sudo=False)
    assert path == tmp_path / "ceremonyclient.service"
    assert path.read_text(encoding="utf-8") == EXPECTED_UNIT


def test_install_unit_with_sudo_installs_staged_file(tmp_path, recorded):
    install_unit(_unit(), unit_dir=str(tmp_path), use_sudo=True)
    argv, _ = recorded[0]
    assert argv[:4] == ["sudo", "install", "-m", "0644"]
    assert argv[-1] == str(tmp_path / "ceremonyclient.service")


def test_install_unit_dry_run_writes_nothing(tmp_path):
    install_unit(_unit(), unit_dir=str(tmp_path), use_sudo=False, dry_run=True)
    assert list(tmp_path.iterdir()) == []


def test_service_commands(recorded):
    systemd.daemon_reload(use_sudo=False)
    systemd.service_action("ceremonyclient", "restart", use_sudo=False)
    assert [c[0] for c in recorded] == [
        ["systemctl", "daemon-reload"],
        ["systemctl", "restart", "ceremonyclient.service"],
    ]


def test_service_action_rejects_unknown_action():
    with pytest.raises(ValueError):
        systemd.service_action("ceremonyclient", "enable", use_sudo=False)


def test_follow_journal_attaches_to_terminal(recorded):
    systemd.follow_journal("ceremonyclient", use_sudo=False)
    argv, kwargs = recorded[0]
    assert argv == ["journalctl", "-u", "ceremonyclient.service", "-f", "--no-hostname", "-o", "cat"]
    assert kwargs["capture"] is False
    assert kwargs["check"] is False


def test_stop_with_spinner_waits_for_exit(monkeypatch):
    proc = FakeProc(polls_before_exit=3)
    monkeypatch.setattr(systemd, "spawn_cmd", lambda argv, dry_run=False: proc)
    out = io.StringIO()

    systemd.stop_service_with_spinner("ceremonyclient", use_sudo=False, stream=out, sleep=lambda s: None)

    text = out.getvalue()
    assert "[ / ] Stopping service..." in text
    assert "[ - ] Stopping service..." in text
    assert proc.returncode == 0


def test_stop_with_spinner_failure_raises(monkeypatch):
    monkeypatch.setattr(systemd, "spawn_cmd", lambda argv, dry_run=False: FakeProc(1, returncode=5))
    with pytest.raises(CommandError) as ei:
        systemd.stop_service_with_spinner("ceremonyclient", use_sudo=False, stream=io.StringIO(), sleep=lambda s: None)
    assert ei.value.returncode == 5
