"""Line-oriented log output shared by the API, scheduler and sync runs."""

import logging
import sys
from datetime import datetime, timezone

ROOT_LOGGER = "wallsync"

# Third-party loggers that are only useful when something is wrong.
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "apscheduler", "aiosqlite")


class StructuredFormatter(logging.Formatter):
    """Render records as ``time | LEVEL | logger [task] | message``.

    Logger names lose the package prefix, so ``wallsync.sync.orchestrator``
    shows up as ``sync.orchestrator``. On interpreters that record the
    asyncio task name it is appended in brackets, which separates a
    scheduled sync from request handling when both write at once.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        timestamp = created.strftime("%Y-%m-%dT%H:%M:%S.") + f"{created.microsecond // 1000:03d}Z"

        source = record.name
        if source.startswith(f"{ROOT_LOGGER}."):
            source = source[len(ROOT_LOGGER) + 1:]

        task_name = getattr(record, "taskName", None)
        if task_name:
            source = f"{source} [{task_name}]"

        line = f"{timestamp} | {record.levelname:<8} | {source} | {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: str = "INFO", quiet: tuple[str, ...] = QUIET_LOGGERS) -> None:
    """Install the structured handler on the root logger.

    Calling this again replaces the previous handler rather than adding
    a second one.

    Args:
        level: Level name such as DEBUG or WARNING; unknown names mean INFO
        quiet: Logger names capped at WARNING
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in quiet:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module, normally called with ``__name__``."""
    return logging.getLogger(name)
