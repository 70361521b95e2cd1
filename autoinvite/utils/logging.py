"""Log sink setup."""

import sys

from loguru import logger

LOG_FORMAT = (
    "[{time:YYYY-MM-DD}][{time:HH:mm:ss}][{name}][{level}] "
    "{extra[account]}{message}"
)

_LEVELS = {0: "INFO", 1: "DEBUG"}


def level_for_verbosity(verbosity: int) -> str:
    """Map a repeated -v count to a loguru level name."""
    return _LEVELS.get(verbosity, "TRACE") if verbosity >= 0 else "WARNING"


def _with_account(record) -> None:
    account = record["extra"].get("account")
    record["extra"]["account"] = f"{account}: " if account else ""


def setup_logging(verbosity: int = 0, log_file: str | None = None) -> None:
    """
    Replace loguru's default sink with the autoinvite sinks.

    Args:
        verbosity: Number of -v flags given on the command line.
        log_file: Optional file that receives the same records as stdout.
    """
    level = level_for_verbosity(verbosity)
    logger.remove()
    logger.configure(patcher=_with_account)
    logger.add(sys.stdout, format=LOG_FORMAT, level=level, colorize=False)
    if log_file:
        logger.add(log_file, format=LOG_FORMAT, level=level, encoding="utf-8")
