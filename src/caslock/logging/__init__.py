"""caslock logging module.

Diagnostic logging for lock contention, restarts and release failures.
"""

from .logger_setup import LoggerConfigError, LoggingConfig, configure_logging, get_logger

__all__ = ["LoggerConfigError", "LoggingConfig", "configure_logging", "get_logger"]
