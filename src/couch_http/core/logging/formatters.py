"""
Log formatters: JSON lines and key=value text.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple, Union

from .config import LogFormat

# Атрибуты LogRecord, которые не являются extra полями
_RESERVED_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _extra_fields(record: logging.LogRecord) -> List[Tuple[str, Any]]:
    return [
        (key, value)
        for key, value in record.__dict__.items()
        if key not in _RESERVED_FIELDS and not key.startswith('_')
    ]


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Example output:
        {"timestamp": "2026-01-15T10:30:45.123000+00:00", "level": "INFO",
         "logger": "couch_http", "message": "Request completed",
         "method": "GET", "status": 200}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(_extra_fields(record))

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """
    Format: [timestamp] [level] [logger] message key=value ...
    """

    def __init__(self):
        super().__init__(
            fmt='[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def format(self, record: logging.LogRecord) -> str:
        base_msg = super().format(record)

        extra = " ".join(f"{key}={value}" for key, value in _extra_fields(record))
        if extra:
            base_msg += " " + extra

        return base_msg


_FORMATTERS = {
    LogFormat.JSON: JSONFormatter,
    LogFormat.TEXT: TextFormatter,
}


def get_formatter(format_type: Union[str, LogFormat]) -> logging.Formatter:
    """
    Форматтер по имени ("json"/"text") или LogFormat.

    Raises:
        ValueError: Неизвестный формат
    """
    try:
        log_format = LogFormat(format_type.lower())
    except ValueError:
        raise ValueError(
            f"Unknown format type: {format_type}. "
            f"Available: {', '.join(f.value for f in LogFormat)}"
        ) from None

    return _FORMATTERS[log_format]()
