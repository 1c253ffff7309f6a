"""
Иерархия исключений CouchDB transport.

Классификация:
- TransportError - сеть/движок: соединение отклонено, таймаут, TLS
- ParseError - битый ответ (status line, content-length)
- DatabaseError - ошибка, которую вернул сам CouchDB (404, 409, ...)

Ретраев нет нигде: все ошибки сразу уходят вызывающему коду.
"""

from enum import Enum
from typing import Optional

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class CouchHTTPException(Exception):
    """Базовое исключение couch_http."""

    def __init__(self, message: str, **kwargs):
        self.message = message
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TRANSPORT
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TransportErrorKind(str, Enum):
    """Вид транспортной ошибки."""
    CONNECTION_REFUSED = "connection_refused"
    OTHER = "other"
    UNKNOWN = "unknown"


# libcurl-compatible engine error codes
ENGINE_COULDNT_RESOLVE_HOST = 6
ENGINE_COULDNT_CONNECT = 7
ENGINE_OPERATION_TIMEDOUT = 28
ENGINE_SSL_CONNECT_ERROR = 35
ENGINE_TOO_MANY_REDIRECTS = 47
ENGINE_RECV_ERROR = 56


class TransportError(CouchHTTPException):
    """
    Ошибка транспорта: запрос не дошёл до CouchDB или ответ не был получен.

    Args:
        message: Сообщение об ошибке
        kind: Вид ошибки (TransportErrorKind)
        code: Код ошибки движка (если есть)
        url: URL запроса
    """

    def __init__(
        self,
        message: str,
        kind: TransportErrorKind = TransportErrorKind.OTHER,
        code: Optional[int] = None,
        url: Optional[str] = None
    ):
        self.kind = kind
        self.code = code
        self.url = url

        full_message = message
        if url:
            full_message += f" (url: {url})"
        super().__init__(full_message)


class TooManyRedirectsError(TransportError):
    """
    Превышен лимит редиректов при ручном следовании Location.

    Args:
        max_redirects: Лимит хопов
        url: Последний URL
    """

    def __init__(self, max_redirects: int, url: Optional[str] = None):
        self.max_redirects = max_redirects
        super().__init__(
            f"Too many redirects (max: {max_redirects})",
            kind=TransportErrorKind.OTHER,
            code=ENGINE_TOO_MANY_REDIRECTS,
            url=url
        )

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# PARSE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ParseError(CouchHTTPException):
    """
    Невалидный HTTP ответ.

    Примеры:
    - Status line не похожа на HTTP/x.y NNN
    - Длина тела не совпадает с Content-Length
    """
    pass

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# DATABASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class DatabaseError(CouchHTTPException):
    """
    Ошибка уровня приложения, которую вернул CouchDB.

    Args:
        message: Человекочитаемое сообщение, например "Not_found (missing)"
        code: HTTP статус ответа
    """

    def __init__(self, message: str, code: int):
        self.code = code
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return self.code


class BadRequestError(DatabaseError):
    """400 Bad Request."""

    def __init__(self, message: str, code: int = 400):
        super().__init__(message, code)


class UnauthorizedError(DatabaseError):
    """401 Unauthorized."""

    def __init__(self, message: str, code: int = 401):
        super().__init__(message, code)


class ForbiddenError(DatabaseError):
    """403 Forbidden."""

    def __init__(self, message: str, code: int = 403):
        super().__init__(message, code)


class NotFoundError(DatabaseError):
    """404 Not Found."""

    def __init__(self, message: str, code: int = 404):
        super().__init__(message, code)


class ConflictError(DatabaseError):
    """409 Conflict (обычно конфликт ревизий документа)."""

    def __init__(self, message: str, code: int = 409):
        super().__init__(message, code)


class PreconditionFailedError(DatabaseError):
    """412 Precondition Failed (например, база уже существует)."""

    def __init__(self, message: str, code: int = 412):
        super().__init__(message, code)


class ServerError(DatabaseError):
    """5xx ошибка CouchDB."""
    pass

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_STATUS_ERRORS = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    412: PreconditionFailedError,
}


def database_error_for_status(message: str, status: int) -> DatabaseError:
    """
    Подобрать подкласс DatabaseError по HTTP статусу.

    Examples:
        >>> err = database_error_for_status("Not_found (missing)", 404)
        >>> assert isinstance(err, NotFoundError)
        >>> assert err.code == 404
    """
    error_cls = _STATUS_ERRORS.get(status)
    if error_cls is not None:
        return error_cls(message, status)
    if 500 <= status < 600:
        return ServerError(message, status)
    return DatabaseError(message, status)


def classify_engine_error(
    code: Optional[int],
    message: Optional[str],
    url: Optional[str] = None
) -> TransportError:
    """
    Конвертировать код/сообщение движка в TransportError.

    Args:
        code: Код ошибки движка (None или 0 - движок ничего не сообщил)
        message: Сообщение движка
        url: URL запроса

    Returns:
        TransportError с правильным kind

    Examples:
        >>> err = classify_engine_error(7, "Connection refused", "http://127.0.0.1:1/")
        >>> assert err.kind == TransportErrorKind.CONNECTION_REFUSED
    """
    if not code:
        return TransportError(
            "HTTP engine returned nothing without providing an error",
            kind=TransportErrorKind.UNKNOWN,
            url=url
        )

    if code == ENGINE_COULDNT_CONNECT:
        return TransportError(
            "Connection refused",
            kind=TransportErrorKind.CONNECTION_REFUSED,
            code=code,
            url=url
        )

    return TransportError(
        f"HTTP engine error: {message or 'unknown error'}",
        kind=TransportErrorKind.OTHER,
        code=code,
        url=url
    )
