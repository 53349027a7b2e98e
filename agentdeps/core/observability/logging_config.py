"""
Process-wide logging for the agent entry point.

main.py calls ``setup_logging()`` exactly once, after the configuration
is loaded; modules only ever do ``logging.getLogger(__name__)``.

Level sources, highest first: --debug / -v, AGENTDEPS_LOG_LEVEL, the
config file, then WARNING. A second destination can be added with
--log-file (or AGENTDEPS_LOG_FILE), optionally at its own level.

The console handler is bound to stderr. Probe stdout is the command's
result and is relayed byte for byte, so no log line may land there.
"""

from __future__ import annotations

import logging
import sys

# (format, datefmt) per console verbosity. Records always carry
# process_name and host_id (see ContextFilter).
_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: (
        "%(asctime)s.%(msecs)03d %(levelname).1s %(process_name)s "
        "%(name)s:%(lineno)d | %(message)s",
        "%H:%M:%S",
    ),
    logging.INFO: ("%(asctime)s %(process_name)s %(name)s: %(message)s", "%H:%M:%S"),
    logging.WARNING: ("%(message)s", None),
}

_FILE_FORMAT = (
    "%(asctime)s %(levelname)s %(process_name)s host=%(host_id)s "
    "%(name)s:%(lineno)d | %(message)s"
)
_FILE_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# Quiet unless the process itself runs at DEBUG
_NOISY_LOGGERS = ("psutil",)


class ContextFilter(logging.Filter):
    """Adds ``process_name`` and ``host_id`` attributes to each record."""

    def __init__(self, process_name: str, host_id: str = ""):
        super().__init__()
        self.process_name = process_name
        self.host_id = host_id or "-"

    def filter(self, record: logging.LogRecord) -> bool:
        record.process_name = self.process_name
        record.host_id = self.host_id
        return True


def _console_handler(level: int) -> logging.Handler:
    if level <= logging.DEBUG:
        fmt, datefmt = _CONSOLE_FORMATS[logging.DEBUG]
    elif level <= logging.INFO:
        fmt, datefmt = _CONSOLE_FORMATS[logging.INFO]
    else:
        fmt, datefmt = _CONSOLE_FORMATS[logging.WARNING]

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def setup_logging(
    process_name: str = "agentdeps",
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    host_id: str = "",
    quiet_third_party: bool = True,
) -> None:
    """Install the console (and optional file) handler on the root logger.

    Args:
        process_name: Tag for every record, normally the subcommand
            (``free_addresses``, ``inventory``).
        level: Console level name.
        log_file: Also write records to this file.
        log_file_level: Level for the file; defaults to ``level``.
        host_id: Stamped on every record; the forced host id under dry-run.
        quiet_third_party: Hold noisy library loggers at WARNING unless
            ``level`` is DEBUG.
    """
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level)]

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))

    context = ContextFilter(process_name, host_id)
    for handler in handlers:
        handler.addFilter(context)

    root = logging.getLogger()
    root.handlers[:] = handlers
    # Root must let through whatever the most verbose handler wants
    root.setLevel(min(h.level for h in handlers))

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    # Handler errors never surface in probe output
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name (case-insensitive) to its number; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.WARNING
