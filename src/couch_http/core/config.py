"""
Система конфигурации для CouchDB transport.

Все конфиги immutable (frozen dataclasses) для потокобезопасности.
Вместо сеттеров - методы with_*(), которые возвращают новый конфиг.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .logging import LoggingConfig

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5984
DEFAULT_SSL_PORT = 443


def _is_int(value: Any) -> bool:
    """bool - подкласс int, но таймаутом быть не может."""
    return isinstance(value, int) and not isinstance(value, bool)


def format_host(host: str) -> str:
    """Хост для URL и заголовка Host: IPv6 литерал в квадратных скобках."""
    if ":" in host and not host.startswith("["):
        return f"[{host}]"
    return host

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TIMEOUT CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class TimeoutConfig:
    """
    Конфигурация таймаутов.

    Args:
        open: Таймаут установки соединения (сек, >= 1) или None
        rw_seconds: Таймаут чтения/записи, секунды
        rw_microseconds: Таймаут чтения/записи, микросекунды

    rw_seconds и rw_microseconds задаются только вместе. Если
    rw_microseconds > 0, rw_seconds может быть 0, иначе rw_seconds >= 1.

    Examples:
        >>> TimeoutConfig(open=5)
        >>> TimeoutConfig(open=3, rw_seconds=0, rw_microseconds=500000)
    """
    open: Optional[int] = None
    rw_seconds: Optional[int] = None
    rw_microseconds: Optional[int] = None

    def __post_init__(self):
        """Валидация."""
        if self.open is not None and (not _is_int(self.open) or self.open < 1):
            raise ValueError("open timeout must be a positive integer")

        if self.rw_seconds is None and self.rw_microseconds is None:
            return

        if self.rw_seconds is None or self.rw_microseconds is None:
            raise ValueError("rw_seconds and rw_microseconds must be set together")

        if not _is_int(self.rw_microseconds) or self.rw_microseconds < 0:
            raise ValueError("rw_microseconds must be an integer >= 0")

        # rw_seconds может быть 0, если rw_microseconds > 0
        min_seconds = 0 if self.rw_microseconds else 1
        if not _is_int(self.rw_seconds) or self.rw_seconds < min_seconds:
            raise ValueError("rw_seconds must be a positive integer")

    def with_open(self, seconds: int) -> 'TimeoutConfig':
        """Новый конфиг с изменённым таймаутом подключения."""
        return replace(self, open=seconds)

    def with_read_write(self, seconds: int, microseconds: int) -> 'TimeoutConfig':
        """Новый конфиг с изменённым таймаутом чтения/записи."""
        return replace(self, rw_seconds=seconds, rw_microseconds=microseconds)

    @property
    def read_write(self) -> Optional[float]:
        """Таймаут чтения/записи в секундах (float) или None."""
        if self.rw_seconds is None:
            return None
        return self.rw_seconds + (self.rw_microseconds or 0) / 1_000_000

    def as_requests_timeout(self) -> Tuple[Optional[float], Optional[float]]:
        """Вернуть как (connect, read) для requests."""
        return (self.open, self.read_write)

    def as_dict(self) -> dict:
        """
        Текущие значения таймаутов.

        Returns:
            Словарь с ключами 'open', 'rw_seconds', 'rw_microseconds'

        See:
            from_dict()
        """
        return {
            'open': self.open,
            'rw_seconds': self.rw_seconds,
            'rw_microseconds': self.rw_microseconds,
        }

    @classmethod
    def from_dict(
        cls,
        values: Mapping[str, Any],
        base: Optional['TimeoutConfig'] = None
    ) -> 'TimeoutConfig':
        """
        Собрать конфиг из результата as_dict().

        Валидация здесь мягкая: нецелые значения просто игнорируются,
        отсутствующие микросекунды считаются нулём.

        Args:
            values: Словарь с ключами 'open', 'rw_seconds', 'rw_microseconds'
            base: Конфиг, поверх которого применяются значения (по умолчанию пустой)

        Raises:
            ValueError: Если передан не словарь
        """
        if not isinstance(values, Mapping):
            raise ValueError("Expected a mapping of timeouts")

        config = base if base is not None else cls()

        if _is_int(values.get('open')):
            config = config.with_open(values['open'])

        if _is_int(values.get('rw_seconds')):
            microseconds = values.get('rw_microseconds')
            if not _is_int(microseconds):
                microseconds = 0
            config = config.with_read_write(values['rw_seconds'], microseconds)

        return config

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SSL CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class SSLConfig:
    """
    Конфигурация TLS.

    Args:
        enabled: Использовать https
        cert_path: Путь к CA bundle. Без него сертификат сервера не проверяется.

    Examples:
        >>> SSLConfig(enabled=True)  # https без проверки
        >>> SSLConfig(enabled=True, cert_path="/etc/ssl/couch-ca.pem")
    """
    enabled: bool = False
    cert_path: Optional[str] = None

    @property
    def protocol(self) -> str:
        return "https" if self.enabled else "http"

    @property
    def verify(self):
        """Значение verify для requests: False или путь к CA bundle."""
        if not self.cert_path:
            return False
        return self.cert_path

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ADAPTER IDENTITY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class AdapterIdentity:
    """Куда ходит transport: host, port, протокол и CA bundle."""
    host: str
    port: int
    protocol: str = "http"
    cert_path: Optional[str] = None

    def equivalent(self, other: 'AdapterIdentity') -> bool:
        """Тот же сервер: совпадают host, port и протокол (cert не важен)."""
        return (
            self.host == other.host
            and self.port == other.port
            and self.protocol == other.protocol
        )

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{format_host(self.host)}:{self.port}"

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MAIN CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class BodyDecoding(str, Enum):
    """Что делать с JSON телом успешного ответа."""
    STRUCTURED = "structured"
    RAW = "raw"


@dataclass(frozen=True)
class TransportConfig:
    """
    Главная конфигурация CouchTransport.

    Args:
        host: Хост CouchDB
        port: Порт CouchDB
        ssl: Конфигурация TLS
        timeout: Конфигурация таймаутов
        decoding: Декодировать ли JSON тела в Python объекты
        follow_redirects: Разрешено ли движку самому ходить по редиректам.
            Если нет - редиректы разрешаются вручную (RedirectResolver).
        max_redirects: Максимум ручных редиректов за один запрос
        logging: Конфигурация логирования (None = без логов)

    Examples:
        >>> config = TransportConfig(host="couch.local")
        >>> config = TransportConfig.create(port=6984, use_ssl=True, open_timeout=5)
    """
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    decoding: BodyDecoding = BodyDecoding.STRUCTURED
    follow_redirects: bool = False
    max_redirects: int = 10
    logging: Optional['LoggingConfig'] = None

    def __post_init__(self):
        """Валидация."""
        if not self.host:
            raise ValueError("host must not be empty")
        if not _is_int(self.port) or not 0 < self.port < 65536:
            raise ValueError("port must be an integer between 1 and 65535")
        if self.max_redirects < 0:
            raise ValueError("max_redirects must be non-negative")
        if not isinstance(self.decoding, BodyDecoding):
            object.__setattr__(self, 'decoding', BodyDecoding(self.decoding))

    @classmethod
    def create(
        cls,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        use_ssl: bool = False,
        cert_path: Optional[str] = None,
        open_timeout: Optional[int] = None,
        rw_timeout: Optional[Tuple[int, int]] = None,
        decode: bool = True,
        **kwargs
    ) -> 'TransportConfig':
        """
        Удобный конструктор конфигурации.

        Args:
            host: Хост
            port: Порт
            use_ssl: Использовать https
            cert_path: Путь к CA bundle
            open_timeout: Таймаут подключения (сек)
            rw_timeout: Таймаут чтения/записи (seconds, microseconds)
            decode: Декодировать JSON тела

        Examples:
            >>> config = TransportConfig.create(open_timeout=5, rw_timeout=(30, 0))
        """
        timeout_cfg = TimeoutConfig(open=open_timeout)
        if rw_timeout is not None:
            timeout_cfg = timeout_cfg.with_read_write(*rw_timeout)

        return cls(
            host=host,
            port=port,
            ssl=SSLConfig(enabled=use_ssl, cert_path=cert_path),
            timeout=timeout_cfg,
            decoding=BodyDecoding.STRUCTURED if decode else BodyDecoding.RAW,
            **kwargs
        )

    @property
    def protocol(self) -> str:
        return self.ssl.protocol

    @property
    def identity(self) -> AdapterIdentity:
        return AdapterIdentity(
            host=self.host,
            port=self.port,
            protocol=self.protocol,
            cert_path=self.ssl.cert_path
        )

    def with_timeout(self, timeout: TimeoutConfig) -> 'TransportConfig':
        return replace(self, timeout=timeout)

    def with_ssl(self, enabled: bool) -> 'TransportConfig':
        return replace(self, ssl=replace(self.ssl, enabled=bool(enabled)))

    def with_cert(self, cert_path: Optional[str]) -> 'TransportConfig':
        return replace(self, ssl=replace(self.ssl, cert_path=cert_path))

    def with_decoding(self, decoding: BodyDecoding) -> 'TransportConfig':
        return replace(self, decoding=BodyDecoding(decoding))

    def with_endpoint(self, host: str, port: int) -> 'TransportConfig':
        """Новый конфиг для другого сервера (таймауты и прочее копируются)."""
        return replace(self, host=host, port=port)
