"""
Logger used by CouchTransport.

Wraps a stdlib logger; keyword arguments become extra fields and are
masked through mask_sensitive_data before they reach any handler.
"""

import logging
from typing import Optional, Any

from .config import LoggingConfig, LogLevel
from .formatters import get_formatter
from .filters import RequestIdFilter, ExtraFieldsFilter
from .handlers import build_handlers
from ...utils.sanitizer import mask_sensitive_data


class CouchLogger:
    """
    Structured logger for the transport.

    Example:
        >>> logger = CouchLogger(LoggingConfig.create(level="DEBUG"))
        >>> logger.info("Request completed", method="GET", status=200)
    """

    def __init__(self, config: Optional[LoggingConfig] = None, name: str = "couch_http"):
        self.config = config or LoggingConfig()
        self.name = name
        self._closed = False

        level = self._get_level(self.config.level)

        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)
        self._logger.propagate = False

        # Remove existing handlers (if reinitializing)
        self._logger.handlers.clear()

        filters = []
        if self.config.enable_request_id:
            filters.append(RequestIdFilter())
        if self.config.extra_fields:
            filters.append(ExtraFieldsFilter(self.config.extra_fields))

        formatter = get_formatter(self.config.format)
        for handler in build_handlers(self.config, level, formatter, filters):
            self._logger.addHandler(handler)

    @staticmethod
    def _get_level(level: LogLevel) -> int:
        return getattr(logging, level.value)

    def _log(self, level: int, message: str, fields: dict) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(level, message, extra=mask_sensitive_data(fields))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs)

    def close(self) -> None:
        """
        Flush and close all handlers.

        Idempotent - safe to call multiple times.
        """
        if self._closed:
            return

        for handler in self._logger.handlers[:]:
            handler.flush()
            handler.close()
            self._logger.removeHandler(handler)

        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
