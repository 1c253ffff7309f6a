# src/couch_http/core/transport.py
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union, TYPE_CHECKING
import itertools
import time
import uuid

from .config import BodyDecoding, TimeoutConfig, TransportConfig, AdapterIdentity
from .engine import EngineRequest, HTTPEngine, default_engine
from .error_handler import ResponseClassifier
from .exceptions import (
    CouchHTTPException,
    TooManyRedirectsError,
    classify_engine_error,
)
from .parser import ResponseResult, parse_response
from .redirect import RedirectResolver

# Delayed import to avoid circular dependency
if TYPE_CHECKING:
    from .logging import CouchLogger


SUPPORTED_METHODS = frozenset({
    "GET", "HEAD", "POST", "PUT", "DELETE", "COPY", "OPTIONS", "PATCH",
})

# Каждый запрос - новое соединение
BASE_HEADERS: Tuple[Tuple[str, str], ...] = (("Connection", "close"),)

# Свой stdlib логгер у каждого transport'а с собственным LoggingConfig
_logger_ids = itertools.count(1)


def _freeze_headers(headers: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    if headers is None:
        return MappingProxyType({})
    return MappingProxyType({str(k): str(v) for k, v in headers.items()})


@dataclass(frozen=True)
class RequestSpec:
    """
    Один запрос к CouchDB.

    Args:
        method: HTTP метод
        path: Путь на сервере, начинается с "/"
        body: Сериализованное тело (уходит как есть)
        headers: Заголовки вызывающего кода
        host: Хост только для этого запроса
        port: Порт только для этого запроса
    """
    method: str
    path: str
    body: Optional[Union[str, bytes]] = None
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    host: Optional[str] = None
    port: Optional[int] = None

    def __post_init__(self):
        method = str(self.method).upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {self.method}")
        if not isinstance(self.path, str) or not self.path.startswith("/"):
            raise ValueError(f"path must start with '/': {self.path!r}")

        object.__setattr__(self, 'method', method)
        if not isinstance(self.headers, MappingProxyType):
            object.__setattr__(self, 'headers', _freeze_headers(self.headers))

    @property
    def has_override(self) -> bool:
        return self.host is not None or self.port is not None

    def redirected(self, path: str, host_header: Optional[str] = None) -> 'RequestSpec':
        """
        Тот же запрос (метод, тело, заголовки) на новый путь.

        Если Location указал хост, Host заменяется на host[:port];
        остальные заголовки (например, Authorization) сохраняются.
        """
        headers = dict(self.headers)
        if host_header is not None:
            headers = {k: v for k, v in headers.items() if k.lower() != "host"}
            headers["Host"] = host_header

        return replace(self, path=path, headers=_freeze_headers(headers), host=None, port=None)


def merge_headers(headers: Mapping[str, str]) -> List[Tuple[str, str]]:
    """Базовые заголовки, затем все заголовки вызывающего кода по порядку."""
    merged = list(BASE_HEADERS)
    merged.extend(headers.items())
    return merged


class CouchTransport:
    """
    HTTP transport для CouchDB.

    Features:
        - Один запрос = одна сессия движка, без keep-alive
        - Разбор сырого ответа в ResponseResult
        - Ошибки CouchDB ({"error": ..., "reason": ...}) -> DatabaseError
        - Ручное следование редиректам с лимитом хопов
        - Immutable: with_*() возвращают новый transport
    """

    def __init__(
        self,
        config: Optional[TransportConfig] = None,
        engine: Optional[HTTPEngine] = None,
        logger: Optional['CouchLogger'] = None,
        **kwargs
    ):
        """
        Initialize transport.

        Args:
            config: TransportConfig instance
            engine: HTTP движок (по умолчанию RequestsEngine)
            logger: Готовый логгер. Его закрывает тот, кто создал, а не transport
            **kwargs: Параметры для TransportConfig.create(), если config не указан
        """
        if config is None:
            config = TransportConfig.create(**kwargs)

        owns_logger = False
        if logger is None and config.logging and config.logging.has_handlers:
            from .logging import CouchLogger
            logger = CouchLogger(
                config=config.logging,
                name=f"couch_http.transport{next(_logger_ids)}",
            )
            owns_logger = True

        object.__setattr__(self, '_config', config)
        object.__setattr__(self, '_engine', engine or default_engine())
        object.__setattr__(self, '_classifier', ResponseClassifier(config.decoding))
        object.__setattr__(self, '_resolver', RedirectResolver())
        object.__setattr__(self, '_logger', logger)
        object.__setattr__(self, '_owns_logger', owns_logger)

        # Политика редиректов читается один раз, при создании
        object.__setattr__(self, '_follow_redirects', bool(config.follow_redirects))

        object.__setattr__(self, '_initialized', True)

    def __setattr__(self, name, value):
        """Запретить изменение после init (immutability)."""
        if hasattr(self, '_initialized'):
            raise RuntimeError(
                f"Cannot modify '{name}' - CouchTransport is immutable. "
                f"Use with_*() methods instead."
            )
        object.__setattr__(self, name, value)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self):
        """
        Закрывает логгер, если этот transport его создал.

        Производные transport'ы (with_*, редиректы) пишут в логгер
        родителя и не закрывают его. Соединений между вызовами нет.
        """
        if self._owns_logger:
            self._logger.close()

    def __repr__(self) -> str:
        return f"<CouchTransport {self.identity.base_url}>"

    # ==================== Конфигурация ====================

    @property
    def config(self) -> TransportConfig:
        return self._config

    @property
    def identity(self) -> AdapterIdentity:
        return self._config.identity

    @property
    def using_ssl(self) -> bool:
        return self._config.ssl.enabled

    @property
    def follow_redirects(self) -> bool:
        return self._follow_redirects

    def derive(self, config: TransportConfig) -> 'CouchTransport':
        """Новый transport с другим конфигом; движок и логгер родителя общие."""
        return CouchTransport(config=config, engine=self._engine, logger=self._logger)

    def with_open_timeout(self, seconds: int) -> 'CouchTransport':
        """Сколько ждать установки соединения (целое число секунд >= 1)."""
        return self.derive(self._config.with_timeout(self._config.timeout.with_open(seconds)))

    def with_rw_timeout(self, seconds: int, microseconds: int = 0) -> 'CouchTransport':
        """Сколько ждать выполнения запроса. seconds может быть 0, если microseconds > 0."""
        timeout = self._config.timeout.with_read_write(seconds, microseconds)
        return self.derive(self._config.with_timeout(timeout))

    def get_timeouts(self) -> Dict[str, Optional[int]]:
        """Текущие таймауты: {'open', 'rw_seconds', 'rw_microseconds'}."""
        return self._config.timeout.as_dict()

    def with_timeouts_from_dict(self, values: Mapping[str, Any]) -> 'CouchTransport':
        """Применить результат get_timeouts() (валидация мягкая)."""
        timeout = TimeoutConfig.from_dict(values, base=self._config.timeout)
        return self.derive(self._config.with_timeout(timeout))

    def with_ssl(self, use: bool) -> 'CouchTransport':
        return self.derive(self._config.with_ssl(use))

    def with_ssl_cert(self, path: Optional[str]) -> 'CouchTransport':
        """Путь к CA bundle, None - не проверять сертификат сервера."""
        return self.derive(self._config.with_cert(path))

    def with_decoding(self, decoding: BodyDecoding) -> 'CouchTransport':
        return self.derive(self._config.with_decoding(decoding))

    # ==================== Запросы ====================

    def execute(
        self,
        method: str,
        path: str,
        body: Optional[Union[str, bytes]] = None,
        headers: Optional[Mapping[str, str]] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> ResponseResult:
        """
        Выполнить запрос и вернуть разобранный ответ.

        Args:
            method: HTTP метод ("GET", "HEAD", ...)
            path: Путь, например "/_all_dbs"
            body: Сериализованное тело запроса
            headers: Заголовки запроса
            host: Хост только для этого запроса (конфиг не меняется)
            port: Порт только для этого запроса

        Raises:
            TransportError: Соединение отклонено, таймаут, ошибка TLS, ...
            ParseError: Невалидный HTTP ответ
            DatabaseError: CouchDB вернул ошибку
        """
        spec = RequestSpec(
            method=method,
            path=path,
            body=body,
            headers=_freeze_headers(headers),
            host=host,
            port=port,
        )
        return self.execute_spec(spec)

    def execute_spec(self, spec: RequestSpec) -> ResponseResult:
        from .logging.filters import set_request_id, clear_request_id

        if self._logger:
            set_request_id(str(uuid.uuid4()))

        try:
            return self._execute(spec, hops=0)
        finally:
            if self._logger:
                clear_request_id()

    def _execute(self, spec: RequestSpec, hops: int) -> ResponseResult:
        if spec.has_override:
            # Хост/порт только для этого запроса: временный transport
            endpoint = self._config.with_endpoint(
                spec.host or self._config.host,
                spec.port or self._config.port,
            )
            return self.derive(endpoint)._execute(replace(spec, host=None, port=None), hops)

        url = f"{self.identity.base_url}{spec.path}"
        request = self._build_engine_request(spec, url)

        if self._logger:
            self._logger.debug(
                "Request started",
                method=spec.method,
                url=url,
                has_body=spec.body is not None,
                hop=hops,
            )

        start_time = time.time()
        redirect = False

        try:
            result = self._engine.perform(request)

            if not result.ok:
                raise classify_engine_error(result.error_code, result.error_message, url)

            response = parse_response(result.raw, spec.method)

            # Движок не ходит по редиректам сам - ходим вручную
            redirect = not self._follow_redirects and response.is_redirect and bool(response.location)
            if redirect:
                if hops >= self._config.max_redirects:
                    raise TooManyRedirectsError(self._config.max_redirects, url)
            else:
                response = self._classifier.classify(response, spec.method)

        except CouchHTTPException as e:
            if self._logger:
                self._logger.error(
                    "Request failed",
                    method=spec.method,
                    url=url,
                    error=str(e),
                    error_type=type(e).__name__,
                    duration_ms=round((time.time() - start_time) * 1000, 2),
                )
            raise

        if redirect:
            return self._follow(spec, response, url, hops)

        if self._logger:
            self._logger.info(
                "Request completed",
                method=spec.method,
                url=url,
                status=response.status,
                duration_ms=round((time.time() - start_time) * 1000, 2),
            )

        return response

    def _follow(self, spec: RequestSpec, response: ResponseResult, url: str, hops: int) -> ResponseResult:
        transport, target = self._resolver.resolve(response.location, self, spec.path)

        if self._logger:
            self._logger.warning(
                "Following redirect",
                method=spec.method,
                url=url,
                status=response.status,
                location=response.location,
                new_transport=transport is not self,
            )

        return transport._execute(spec.redirected(target.path, target.host_header), hops + 1)

    def _build_engine_request(self, spec: RequestSpec, url: str) -> EngineRequest:
        return EngineRequest(
            method=spec.method,
            url=url,
            headers=merge_headers(spec.headers),
            body=spec.body or None,
            timeout=self._config.timeout.as_requests_timeout(),
            verify=self._config.ssl.verify,
            follow_redirects=self._follow_redirects,
            max_redirects=self._config.max_redirects,
            no_body=spec.method == "HEAD",
        )
