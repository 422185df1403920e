"""
Logging Utilities

Logger adapter that carries bound ledger context (student, hostel,
period) into every record it emits.
"""

import logging
from typing import Any, Dict, Optional


class LoggerAdapter:
    """Enhanced logger adapter with context management"""

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        self.logger = logger
        self._context: Dict[str, Any] = dict(context or {})

    def bind(self, **kwargs) -> "LoggerAdapter":
        """Return a child adapter with extra context, leaving this one untouched"""
        return LoggerAdapter(self.logger, {**self._context, **kwargs})

    def _log(self, level: int, message: str, *args, **kwargs):
        """Internal log method with context"""
        extra = dict(self._context)
        extra.update(kwargs.get('extra') or {})
        kwargs['extra'] = extra

        self.logger.log(level, message, *args, **kwargs)

    def debug(self, message: str, *args, **kwargs):
        self._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs):
        self._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        self._log(logging.ERROR, message, *args, **kwargs)

    def exception(self, message: str, *args, **kwargs):
        kwargs.setdefault('exc_info', True)
        self._log(logging.ERROR, message, *args, **kwargs)

    def critical(self, message: str, *args, **kwargs):
        self._log(logging.CRITICAL, message, *args, **kwargs)


def get_logger(name: Optional[str] = None) -> LoggerAdapter:
    """
    Get configured logger instance.

    Args:
        name: Logger name (defaults to caller's module)

    Returns:
        Enhanced logger adapter
    """
    if name is None:
        import inspect
        frame = inspect.currentframe()
        caller_frame = frame.f_back
        name = caller_frame.f_globals.get('__name__', 'hostel_ledger')

    return LoggerAdapter(logging.getLogger(name))
