"""
Logging configuration — one setup call at CLI startup.

Every module does ``logger = logging.getLogger(__name__)`` and inherits
what is configured here.

Console level precedence:
    CLI flag  >  GPUBOOT_LOG_LEVEL env var  >  WARNING (default)

Installers fail in ways that only make sense with the full command
history, so a DEBUG log file is kept alongside the console.  Its path
comes from GPUBOOT_LOG_FILE, else ~/.cache/gpuboot/gpuboot.log.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Console formats, keyed by the most verbose level they apply to
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_CONSOLE_DEFAULT = "%(message)s"

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

_log_file_path: Path | None = None


def default_log_file() -> Path:
    """Default diagnostic log location."""
    return Path.home() / ".cache" / "gpuboot" / "gpuboot.log"


def current_log_file() -> Path | None:
    """The log file opened by the last ``setup_logging`` call, if any."""
    return _log_file_path


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _CONSOLE_DEFAULT, None
    for threshold, candidate, candidate_datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            fmt, datefmt = candidate, candidate_datefmt
            break
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: Path, level: int) -> logging.Handler | None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as e:
        logging.getLogger(__name__).warning("Cannot open log file %s: %s", path, e)
        return None
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | Path | None = None,
    log_file_level: str | None = "DEBUG",
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Diagnostic log path.  ``None`` disables the file.
        log_file_level: File level name; ``None`` means same as console.
    """
    global _log_file_path

    console_level = _parse_level(level)

    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.addHandler(_console_handler(console_level))

    root_level = console_level
    _log_file_path = None
    if log_file:
        path = Path(log_file).expanduser()
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handler = _file_handler(path, file_level)
        if handler is not None:
            root.addHandler(handler)
            root_level = min(root_level, file_level)
            _log_file_path = path
    root.setLevel(root_level)

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name to number; unknown names mean WARNING."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
