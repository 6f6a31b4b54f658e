from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

DEFAULT_LOG_PATH = "/var/log/ceremony-installer.log"
FALLBACK_LOG_NAME = "ceremony-installer.log"

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
CONSOLE_FORMAT = "%(message)s"

_handlers: List[logging.Handler] = []
_active_path: Optional[str] = None


def _open_log_file(path: Path) -> logging.FileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, encoding="utf-8")


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    *,
    verbose: bool = False,
    console: bool = True,
) -> str:
    """Send installer logs to ``log_path`` and the terminal.

    The file always receives DEBUG records (command output included); the
    console shows bare INFO messages unless ``verbose``. A log path that cannot
    be opened, typically /var/log without root, is replaced by
    ``./ceremony-installer.log``.

    Calling it again replaces the handlers installed by the previous call.
    Returns the path actually written to.
    """

    global _active_path

    root = logging.getLogger()
    for h in _handlers:
        root.removeHandler(h)
        h.close()
    _handlers.clear()

    requested = Path(log_path).expanduser()
    fallback_reason: Optional[OSError] = None
    try:
        file_handler = _open_log_file(requested)
        chosen = requested
    except OSError as e:
        fallback_reason = e
        chosen = Path.cwd() / FALLBACK_LOG_NAME
        file_handler = _open_log_file(chosen)

    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
    _handlers.append(file_handler)

    if console:
        stream = logging.StreamHandler(sys.stderr)
        stream.setLevel(logging.DEBUG if verbose else logging.INFO)
        stream.setFormatter(logging.Formatter(FILE_FORMAT if verbose else CONSOLE_FORMAT))
        _handlers.append(stream)

    root.setLevel(logging.DEBUG)
    for h in _handlers:
        root.addHandler(h)

    _active_path = str(chosen)
    log = logging.getLogger(__name__)
    if fallback_reason is not None:
        log.warning("Cannot write %s (%s); logging to %s", requested, fallback_reason, _active_path)
    log.debug("Logging to %s (requested %s)", _active_path, log_path)
    return _active_path
