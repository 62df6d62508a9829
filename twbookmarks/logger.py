import os
import sys
from typing import Literal, cast

from loguru import logger

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <7}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)


def _level_from_env(key: str, default: LogLevel = "INFO") -> LogLevel:
    val = os.getenv(key, default).upper()
    if val in LOG_LEVELS:
        return cast(LogLevel, val)

    logger.warning(f"Unknown log level {val!r} in {key}, using {default}")
    return default


_level: LogLevel = _level_from_env("TWB_LOG_LEVEL")


def set_log_level(level: LogLevel):
    global _level
    _level = level


def get_log_level() -> LogLevel:
    return _level


def _filter(record) -> bool:
    return record["level"].no >= logger.level(_level).no


logger.remove()
logger.add(sys.stderr, format=LOG_FORMAT, filter=_filter)

# optional second sink, always at DEBUG so a run can be inspected afterwards
if log_file := os.getenv("TWB_LOG_FILE"):
    logger.add(log_file, level="DEBUG", rotation="10 MB", retention=3, enqueue=True)
