"""
Logging Module - Rich console logging for the advisor.
======================================================

Every module logs through ``get_logger(__name__)``. The first call installs
a default configuration; the CLI reconfigures from settings at startup.
Console output goes through one shared Rich console so log lines and
progress bars do not interleave badly.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# HTTP and client libraries that log every request at INFO
QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "urllib3",
    "chromadb",
    "google_genai",
    "google.genai",
)

_console = Console()
_configured = False


def _level_number(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def _build_handlers(
    use_rich: bool, log_file: Optional[str], log_format: str
) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []

    if use_rich:
        console_handler: logging.Handler = RichHandler(
            console=_console,
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
        console_handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(log_format))
    handlers.append(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(log_format))
        handlers.append(file_handler)

    return handlers


def setup_logging(
    level: str = "INFO",
    use_rich: bool = True,
    log_file: Optional[str] = None,
    log_format: str = DEFAULT_FORMAT,
    force: bool = False,
) -> None:
    """
    Install handlers on the root logger.

    Args:
        level: Root log level name
        use_rich: Render console output with Rich instead of a plain stream
        log_file: Also append records to this file
        log_format: Format for plain and file output
        force: Replace an existing configuration
    """
    global _configured

    if _configured and not force:
        return

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(_level_number(level))
    for handler in _build_handlers(use_rich, log_file, log_format):
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
    logging.getLogger(__name__).debug(
        f"Logging ready (level={level}, rich={use_rich}, file={log_file or '-'})"
    )


def setup_logging_from_settings() -> None:
    """Reconfigure logging from the ``logging`` settings section."""
    from course_advisor.shared.config import get_settings

    settings = get_settings()
    setup_logging(
        level=settings.get_effective_log_level(),
        use_rich=settings.logging.rich_console,
        log_file=settings.logging.file or None,
        log_format=settings.logging.format,
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    if not _configured:
        setup_logging()
    return logging.getLogger(name)


def get_console() -> Console:
    """The Rich console shared by log output and CLI rendering."""
    return _console


class LogContext:
    """
    Temporarily change one logger's level.

    Example:
        >>> with LogContext("WARNING", "course_advisor"):
        ...     run_noisy_batch_job()
    """

    def __init__(self, level: str, logger_name: Optional[str] = None):
        self._logger = logging.getLogger(logger_name)
        self._level = _level_number(level)
        self._saved: Optional[int] = None

    def __enter__(self) -> "LogContext":
        self._saved = self._logger.level
        self._logger.setLevel(self._level)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        if self._saved is not None:
            self._logger.setLevel(self._saved)
