import logging

from ceremony_installer.logging_utils import configure_logging


def test_writes_debug_records_to_file(tmp_path):
    path = tmp_path / "logs" / "install.log"
    assert configure_logging(str(path), console=False) == str(path)

    logging.getLogger("ceremony_installer.test").debug("CMD git clone")
    for h in logging.getLogger().handlers:
        h.flush()

    assert "CMD git clone" in path.read_text(encoding="utf-8")


def test_unwritable_path_falls_back_to_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")

    chosen = configure_logging(str(blocker / "install.log"), console=False)

    assert chosen == str(tmp_path / "ceremony-installer.log")


def test_reconfiguring_replaces_handlers(tmp_path):
    root = logging.getLogger()
    configure_logging(str(tmp_path / "a.log"))
    before = len(root.handlers)
    configure_logging(str(tmp_path / "b.log"))
    assert len(root.handlers) == before
