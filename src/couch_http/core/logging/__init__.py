"""
Logging system for couch_http.

Example:
    >>> from couch_http.core.logging import LoggingConfig
    >>> from couch_http import CouchTransport, TransportConfig
    >>>
    >>> config = TransportConfig(logging=LoggingConfig.create(level="DEBUG", format="json"))
    >>> transport = CouchTransport(config=config)
"""

from .config import LoggingConfig, LogLevel, LogFormat
from .logger import CouchLogger
from .formatters import JSONFormatter, TextFormatter, get_formatter
from .filters import (
    RequestIdFilter,
    ExtraFieldsFilter,
    set_request_id,
    get_request_id,
    clear_request_id,
)
from .handlers import build_handlers, create_console_handler, create_file_handler

__all__ = [
    # Config
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    # Logger
    "CouchLogger",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "get_formatter",
    # Filters
    "RequestIdFilter",
    "ExtraFieldsFilter",
    "set_request_id",
    "get_request_id",
    "clear_request_id",
    # Handlers
    "build_handlers",
    "create_console_handler",
    "create_file_handler",
]
