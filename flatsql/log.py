"""
Logging utilities for the interpreter.
Provides per-component loggers for tracing parsing, execution and persistence.
"""

import logging
import sys
from enum import IntEnum
from typing import Optional

from flatsql.config import settings


class LogLevel(IntEnum):
    """Log levels for interpreter operations."""
    CRITICAL = 50
    ERROR = 40
    WARNING = 30
    INFO = 20
    DEBUG = 10
    TRACE = 5


def level_from_name(name: str) -> int:
    """Translate a level name such as 'info' into a LogLevel value."""
    try:
        return LogLevel[name.strip().upper()]
    except KeyError:
        return LogLevel.WARNING


class DatabaseLogger:
    """
    Logger for interpreter operations with support for different components.
    """

    def __init__(self, name: str = "flatsql", level: int = LogLevel.WARNING):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        # Only add handler if none exists
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def set_level(self, level: int) -> None:
        """Set the logging level."""
        self.logger.setLevel(level)

    def error(self, msg: str, **kwargs) -> None:
        self.logger.error(msg, **kwargs)

    def warning(self, msg: str, **kwargs) -> None:
        self.logger.warning(msg, **kwargs)

    def info(self, msg: str, **kwargs) -> None:
        self.logger.info(msg, **kwargs)

    def debug(self, msg: str, **kwargs) -> None:
        self.logger.debug(msg, **kwargs)

    def trace(self, msg: str, **kwargs) -> None:
        """Log trace message (very verbose)."""
        if self.logger.isEnabledFor(LogLevel.TRACE):
            self.logger.log(LogLevel.TRACE, msg, **kwargs)


# Global logger instances for different components
_loggers = {}

# Level forced on every component by set_global_level(); None follows settings
_global_level = None


def configured_level() -> int:
    """Level new component loggers start at."""
    if _global_level is not None:
        return _global_level
    return level_from_name(settings.LOG_LEVEL)


def get_logger(component: str = "flatsql") -> DatabaseLogger:
    """
    Get or create a logger for a specific component.

    Args:
        component: Name of the component (e.g., 'lexer', 'store', 'codec')

    Returns:
        DatabaseLogger instance for the component
    """
    if component not in _loggers:
        _loggers[component] = DatabaseLogger(f"flatsql.{component}", configured_level())
    return _loggers[component]


def set_global_level(level: Optional[int]) -> Optional[int]:
    """
    Set logging level for all components, including ones created later.

    Passing None goes back to the level from settings. Returns the level
    previously forced, so callers can put it back.
    """
    global _global_level
    previous = _global_level
    _global_level = level
    for logger in _loggers.values():
        logger.set_level(configured_level())
    return previous


def log_sql_parse(sql: str, component: str = "sql") -> None:
    """Log SQL parsing."""
    get_logger(component).debug(f"Parsing SQL: {sql}")


def log_statement(statement_type: str, table: str, component: str = "executor") -> None:
    """Log the dispatch of one statement."""
    get_logger(component).debug(f"Executing {statement_type} on '{table}'")


def log_store_load(filename: str, table_count: int, component: str = "codec") -> None:
    """Log a database file load."""
    get_logger(component).info(f"Loaded {table_count} table(s) from {filename}")


def log_store_save(filename: str, table_count: int, component: str = "codec") -> None:
    """Log a database file save."""
    get_logger(component).info(f"Saved {table_count} table(s) to {filename}")
