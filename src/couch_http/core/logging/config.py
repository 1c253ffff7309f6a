"""
Конфигурация логирования transport'а.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """json - одна строка JSON на запись, text - key=value."""
    JSON = "json"
    TEXT = "text"


DEFAULT_MAX_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class LoggingConfig:
    """
    Логирование CouchTransport.

    Args:
        level: Минимальный уровень
        format: Формат записей
        enable_console: Писать в stderr
        enable_file: Писать в файл с ротацией
        file_path: Путь к файлу (обязателен при enable_file=True)
        max_bytes: Размер файла до ротации
        backup_count: Сколько старых файлов хранить
        enable_request_id: Добавлять request_id (общий для всех хопов редиректа)
        extra_fields: Поля, которые добавляются к каждой записи

    Examples:
        >>> LoggingConfig.create(level="DEBUG", format="json")
        >>> LoggingConfig(enable_console=False).with_file("/var/log/couch_http.log")
    """
    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    enable_console: bool = True
    enable_file: bool = False
    file_path: Optional[str] = None
    max_bytes: int = DEFAULT_MAX_BYTES
    backup_count: int = 5
    enable_request_id: bool = True
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Валидация."""
        if self.enable_file and not self.file_path:
            raise ValueError("file_path is required when enable_file=True")
        if self.max_bytes < 0 or self.backup_count < 0:
            raise ValueError("max_bytes and backup_count must be non-negative")

    @property
    def has_handlers(self) -> bool:
        """Есть ли куда писать."""
        return self.enable_console or self.enable_file

    def with_file(self, file_path: str) -> 'LoggingConfig':
        """Новый конфиг с записью в файл."""
        return replace(self, enable_file=True, file_path=file_path)

    @classmethod
    def create(
        cls,
        level: str = "INFO",
        format: str = "text",
        enable_console: bool = True,
        enable_file: bool = False,
        file_path: Optional[str] = None,
        enable_request_id: bool = True,
        extra_fields: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> 'LoggingConfig':
        """
        Собрать конфиг из строк (уровень и формат без учёта регистра).

        Raises:
            ValueError: Неизвестный уровень или формат
        """
        return cls(
            level=LogLevel(level.upper()),
            format=LogFormat(format.lower()),
            enable_console=enable_console,
            enable_file=enable_file,
            file_path=file_path,
            enable_request_id=enable_request_id,
            extra_fields=dict(extra_fields or {}),
            **kwargs
        )
