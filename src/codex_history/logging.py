"""Logging for codex-history.

Every module logs through a child of the `codex_history` logger. The CLI
calls setup_logging once per run, which attaches a log file under the
manager home (and stderr with --verbose) to that parent logger.
"""

import logging
import sys
from pathlib import Path

PACKAGE_LOGGER = "codex_history"

# Used when no manager home is known, e.g. in library use
DEFAULT_LOG_DIR = Path.home() / ".codex-history" / "logs"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    name: str,
    log_dir: Path | None = None,
    level: int = logging.INFO,
    console: bool = True,
) -> logging.Logger:
    """Send codex-history log records to <log_dir>/<name>.log.

    Handlers go on the package logger, so records from the manager,
    indexer and history log all land in the same file. Calling this again
    in the same process only updates the level.

    Args:
        name: Run name, used as the log file name and the returned logger
        log_dir: Directory for the log file (defaults to DEFAULT_LOG_DIR)
        level: Minimum level recorded
        console: Also echo records to stderr

    Returns:
        The `codex_history.<name>` logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    if package_logger.handlers:
        return get_logger(name)

    log_dir = log_dir or DEFAULT_LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers: list[logging.Handler] = [
        logging.FileHandler(log_dir / f"{name}.log", encoding="utf-8")
    ]
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    return get_logger(name)


def get_logger(name: str) -> logging.Logger:
    """Logger for one codex-history module, e.g. get_logger("indexer")."""
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
