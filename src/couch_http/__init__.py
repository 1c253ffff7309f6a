"""couch_http - HTTP transport for CouchDB clients."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .core.transport import CouchTransport, RequestSpec
from .core.parser import ResponseResult
from .core.config import (
    TransportConfig,
    TimeoutConfig,
    SSLConfig,
    AdapterIdentity,
    BodyDecoding,
)
from .core.engine import HTTPEngine, RequestsEngine
from .core.exceptions import (
    CouchHTTPException,
    TransportError,
    TransportErrorKind,
    TooManyRedirectsError,
    ParseError,
    DatabaseError,
    NotFoundError,
    ConflictError,
    UnauthorizedError,
    ForbiddenError,
)
from .core.logging import LoggingConfig

# Users can configure logging themselves using logging.getLogger('couch_http')
logging.getLogger('couch_http').addHandler(logging.NullHandler())

try:
    __version__ = version("couch-http-core")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__all__ = [
    # Core
    "CouchTransport",
    "RequestSpec",
    "ResponseResult",
    "HTTPEngine",
    "RequestsEngine",

    # Config
    "TransportConfig",
    "TimeoutConfig",
    "SSLConfig",
    "AdapterIdentity",
    "BodyDecoding",
    "LoggingConfig",

    # Exceptions
    "CouchHTTPException",
    "TransportError",
    "TransportErrorKind",
    "TooManyRedirectsError",
    "ParseError",
    "DatabaseError",
    "NotFoundError",
    "ConflictError",
    "UnauthorizedError",
    "ForbiddenError",

    # Version
    "__version__",
]
