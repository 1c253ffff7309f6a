"""Core couch_http модули."""

from .config import (
    TimeoutConfig,
    SSLConfig,
    AdapterIdentity,
    BodyDecoding,
    TransportConfig,
)
from .exceptions import (
    CouchHTTPException,
    TransportError,
    TransportErrorKind,
    TooManyRedirectsError,
    ParseError,
    DatabaseError,
    BadRequestError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    PreconditionFailedError,
    ServerError,
    classify_engine_error,
    database_error_for_status,
)
from .parser import ResponseResult, parse_response, parse_cookie_string
from .error_handler import ResponseClassifier
from .engine import EngineRequest, EngineResult, HTTPEngine, RequestsEngine
from .redirect import RedirectResolver, RedirectTarget, parse_location
from .transport import CouchTransport, RequestSpec

__all__ = [
    # Config
    "TimeoutConfig",
    "SSLConfig",
    "AdapterIdentity",
    "BodyDecoding",
    "TransportConfig",
    # Core
    "CouchTransport",
    "RequestSpec",
    "ResponseResult",
    "ResponseClassifier",
    "RedirectResolver",
    "RedirectTarget",
    "parse_response",
    "parse_cookie_string",
    "parse_location",
    # Engine
    "EngineRequest",
    "EngineResult",
    "HTTPEngine",
    "RequestsEngine",
    # Exceptions
    "CouchHTTPException",
    "TransportError",
    "TransportErrorKind",
    "TooManyRedirectsError",
    "ParseError",
    "DatabaseError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "PreconditionFailedError",
    "ServerError",
    "classify_engine_error",
    "database_error_for_status",
]
