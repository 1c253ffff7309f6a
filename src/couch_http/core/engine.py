"""
HTTP движок: "выполни запрос, верни сырые байты или код ошибки".

CouchTransport не знает про requests напрямую: он собирает EngineRequest
и получает EngineResult. RequestsEngine - реализация по умолчанию.
"""

import errno
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Union

import requests
import urllib3
from requests.structures import CaseInsensitiveDict

from .exceptions import (
    ENGINE_COULDNT_CONNECT,
    ENGINE_COULDNT_RESOLVE_HOST,
    ENGINE_OPERATION_TIMEDOUT,
    ENGINE_RECV_ERROR,
    ENGINE_SSL_CONNECT_ERROR,
    ENGINE_TOO_MANY_REDIRECTS,
)

_HTTP_VERSIONS = {10: "1.0", 11: "1.1", 20: "2.0"}


@dataclass(frozen=True)
class EngineRequest:
    """
    Всё, что нужно движку для одного запроса.

    Args:
        method: HTTP метод
        url: Полный URL
        headers: Заголовки в порядке отправки
        body: Тело запроса (отправляется как есть)
        timeout: (connect, read) в секундах
        verify: False или путь к CA bundle
        follow_redirects: Может ли движок сам ходить по Location
        max_redirects: Лимит редиректов для движка
        no_body: Не читать тело ответа (HEAD)
    """
    method: str
    url: str
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: Optional[Union[str, bytes]] = None
    timeout: Tuple[Optional[float], Optional[float]] = (None, None)
    verify: Union[bool, str] = True
    follow_redirects: bool = False
    max_redirects: int = 10
    no_body: bool = False


@dataclass(frozen=True)
class EngineResult:
    """Сырые байты ответа, либо код и сообщение ошибки. Бывает и ничего."""
    raw: Optional[bytes] = None
    error_code: Optional[int] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.raw is not None


class HTTPEngine(ABC):
    """Исходящий интерфейс transport'а."""

    @abstractmethod
    def perform(self, request: EngineRequest) -> EngineResult:
        """Выполнить запрос. Не бросает исключений на сетевые ошибки."""


def _iter_causes(exc: BaseException) -> Iterator[BaseException]:
    """Обойти цепочку причин: __cause__, __context__, .reason, args."""
    seen = set()
    stack = [exc]

    while stack:
        current = stack.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current

        stack.append(current.__cause__)
        stack.append(current.__context__)
        reason = getattr(current, "reason", None)
        if isinstance(reason, BaseException):
            stack.append(reason)
        stack.extend(arg for arg in current.args if isinstance(arg, BaseException))


def _is_connection_refused(exc: BaseException) -> bool:
    for cause in _iter_causes(exc):
        if isinstance(cause, ConnectionRefusedError):
            return True
        if isinstance(cause, OSError) and cause.errno == errno.ECONNREFUSED:
            return True
    return "connection refused" in str(exc).lower()


def _is_name_resolution_error(exc: BaseException) -> bool:
    return any(isinstance(cause, socket.gaierror) for cause in _iter_causes(exc))


def engine_error_code(exc: Exception) -> int:
    """
    Сопоставить исключение requests коду ошибки движка.

    Examples:
        >>> engine_error_code(requests.exceptions.ReadTimeout())
        28
    """
    if isinstance(exc, (requests.exceptions.Timeout, urllib3.exceptions.TimeoutError)):
        return ENGINE_OPERATION_TIMEDOUT

    elif isinstance(exc, requests.exceptions.SSLError):
        return ENGINE_SSL_CONNECT_ERROR

    elif isinstance(exc, requests.exceptions.TooManyRedirects):
        return ENGINE_TOO_MANY_REDIRECTS

    elif isinstance(exc, requests.exceptions.ConnectionError):
        if _is_connection_refused(exc):
            return ENGINE_COULDNT_CONNECT
        if _is_name_resolution_error(exc):
            return ENGINE_COULDNT_RESOLVE_HOST
        return ENGINE_RECV_ERROR

    return ENGINE_RECV_ERROR


def build_raw_response(response: requests.Response, read_body: bool = True) -> bytes:
    """
    Собрать status line + заголовки + тело из ответа requests.

    Тело берётся из urllib3 без распаковки Content-Encoding, чтобы
    Content-Length совпадал с тем, что прислал сервер.
    """
    raw = response.raw
    version = _HTTP_VERSIONS.get(getattr(raw, "version", None), "1.1")
    reason = response.reason or ""

    lines = [f"HTTP/{version} {response.status_code} {reason}".rstrip()]

    raw_headers = getattr(raw, "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "items"):
        header_items = list(raw_headers.items())
    else:
        header_items = list(response.headers.items())
    lines.extend(f"{name}: {value}" for name, value in header_items)

    body = b""
    if read_body:
        if getattr(response, "_content_consumed", False):
            # Кто-то уже прочитал поток (например, мок) - берём готовое
            body = response.content or b""
        else:
            body = raw.read(decode_content=False) or b""

    return "\r\n".join(lines).encode("iso-8859-1") + b"\r\n\r\n" + body


class RequestsEngine(HTTPEngine):
    """
    Движок на requests.

    Каждый вызов - своя requests.Session, закрывается до возврата.
    Никакого keep-alive между вызовами.
    """

    def _create_session(self, request: EngineRequest) -> requests.Session:
        """Create bare session."""
        session = requests.Session()
        # Только наши заголовки: без Accept-Encoding тело не придёт сжатым
        session.headers = CaseInsensitiveDict()
        session.max_redirects = request.max_redirects
        return session

    def perform(self, request: EngineRequest) -> EngineResult:
        headers = CaseInsensitiveDict()
        for name, value in request.headers:
            headers[name] = value

        body = request.body
        if isinstance(body, str):
            body = body.encode("utf-8")

        session = self._create_session(request)
        try:
            response = session.request(
                method=request.method,
                url=request.url,
                headers=headers,
                data=body,
                timeout=request.timeout,
                verify=request.verify,
                allow_redirects=request.follow_redirects,
                stream=True,
            )
            try:
                raw = build_raw_response(response, read_body=not request.no_body)
            finally:
                response.close()
        except (requests.exceptions.RequestException, urllib3.exceptions.HTTPError) as e:
            # Ошибки чтения тела приходят из urllib3 напрямую
            return EngineResult(error_code=engine_error_code(e), error_message=str(e))
        finally:
            session.close()

        return EngineResult(raw=raw)


def default_engine() -> HTTPEngine:
    return RequestsEngine()
