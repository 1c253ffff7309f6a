# src/couch_http/core/redirect.py
"""
Ручное следование редиректам.

Используется, когда движку запрещено самому ходить по Location
(TransportConfig.follow_redirects=False): transport получает 3xx,
а RedirectResolver решает, на какой transport и по какому пути
повторить исходный запрос.
"""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING
from urllib.parse import urljoin, urlsplit

from .config import DEFAULT_PORT, DEFAULT_SSL_PORT, format_host

if TYPE_CHECKING:
    from .transport import CouchTransport


@dataclass(frozen=True)
class RedirectTarget:
    """
    Разобранный Location.

    Attributes:
        scheme: http/https (None для относительного Location)
        host: Хост (None для относительного Location)
        port: Порт, если был указан явно
        path: Путь вместе с query, минимум "/"
        written_host: Хост в том регистре, в каком он записан в Location
    """
    scheme: Optional[str]
    host: Optional[str]
    port: Optional[int]
    path: str
    written_host: Optional[str] = field(default=None, compare=False)

    def effective_port(self, default_scheme: str = "http") -> int:
        """Явный порт, иначе 443 для https и 5984 для http."""
        if self.port is not None:
            return self.port
        scheme = self.scheme or default_scheme
        return DEFAULT_SSL_PORT if scheme == "https" else DEFAULT_PORT

    @property
    def host_header(self) -> Optional[str]:
        """Значение Host для нового запроса: host[:port]."""
        if not self.host:
            return None
        host = format_host(self.written_host or self.host)
        if self.port is not None:
            return f"{host}:{self.port}"
        return host


def _written_host(netloc: str) -> Optional[str]:
    """Хост из netloc без userinfo и порта, регистр не меняется."""
    host = netloc.rpartition("@")[2]
    if host.startswith("["):
        return host[:host.find("]") + 1] or None
    return host.partition(":")[0] or None


def parse_location(location: str, current_path: str = "/") -> RedirectTarget:
    """
    Разобрать значение заголовка Location.

    Относительный путь без хоста разрешается относительно текущего пути.

    Examples:
        >>> parse_location("https://replica:6984/db/doc").port
        6984
        >>> parse_location("/other").host is None
        True
    """
    parts = urlsplit(location.strip())

    path = parts.path
    if not parts.netloc and path and not path.startswith("/"):
        path = urljoin(current_path, path)
    if not path:
        path = "/"
    if parts.query:
        path = f"{path}?{parts.query}"

    return RedirectTarget(
        scheme=parts.scheme.lower() or None,
        host=parts.hostname,
        port=parts.port,
        path=path,
        written_host=_written_host(parts.netloc),
    )


class RedirectResolver:
    """Выбирает transport для следующего хопа редиректа."""

    def resolve(self, location: str, transport: 'CouchTransport', current_path: str = "/"):
        """
        Разобрать Location и подобрать transport.

        Args:
            location: Значение заголовка Location
            transport: Transport, который получил 3xx
            current_path: Путь исходного запроса (для относительных Location)

        Returns:
            (transport, target): тот же transport, если сервер тот же,
            иначе новый с теми же таймаутами.
        """
        target = parse_location(location, current_path)
        return self.select_transport(transport, target), target

    @staticmethod
    def select_transport(transport: 'CouchTransport', target: RedirectTarget) -> 'CouchTransport':
        identity = transport.identity

        # Только путь - тот же сервер
        if not target.host:
            return transport

        scheme = target.scheme or identity.protocol
        port = target.effective_port(scheme)
        if (
            target.host == identity.host.strip("[]").lower()
            and port == identity.port
            and scheme == identity.protocol
        ):
            return transport

        # Новый сервер: таймауты, CA bundle и режим декодирования копируются
        config = transport.config.with_endpoint(target.host, port)
        return transport.derive(config.with_ssl(scheme == "https"))
