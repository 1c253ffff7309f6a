"""
Log filters: per-thread request id and static extra fields.
"""

import logging
import threading
from typing import Dict, Any, Optional


_request_id_storage = threading.local()


def set_request_id(request_id: str) -> None:
    """Set request id for current thread."""
    _request_id_storage.value = request_id


def get_request_id() -> Optional[str]:
    """Request id for current thread, or None."""
    return getattr(_request_id_storage, 'value', None)


def clear_request_id() -> None:
    if hasattr(_request_id_storage, 'value'):
        delattr(_request_id_storage, 'value')


class RequestIdFilter(logging.Filter):
    """
    Adds request_id to records emitted while a request is in flight.

    Redirect hops share the request id of the original call.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = get_request_id()
        if request_id:
            record.request_id = request_id
        return True


class ExtraFieldsFilter(logging.Filter):
    """Adds static fields (service, environment, ...) to every record."""

    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = extra_fields

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.extra_fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
