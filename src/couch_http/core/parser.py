"""
Разбор сырого HTTP ответа в ResponseResult.

Формат на входе: status line, заголовки через CRLF, пустая строка, тело.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .exceptions import ParseError

HEADER_BODY_SEPARATOR = b"\r\n\r\n"
HEADER_LINE_SEPARATOR = "\r\n"
COOKIE_SEPARATOR = "; "

_STATUS_LINE_RE = re.compile(r"^HTTP/(?P<version>\d+\.\d+)\s+(?P<status>\d+)")


@dataclass
class ResponseResult:
    """
    Разобранный ответ сервера.

    Attributes:
        status: HTTP статус
        version: Версия протокола, например "1.1"
        raw_status_line: Status line как есть
        headers: Заголовки, имена в нижнем регистре
        cookies: Куки из set-cookie (None, если заголовка не было)
        body: Тело - строка, либо декодированный JSON
    """
    status: int
    version: str
    raw_status_line: str
    headers: Dict[str, str] = field(default_factory=dict)
    cookies: Optional[Dict[str, str]] = None
    body: Any = ""

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("content-type")

    @property
    def location(self) -> Optional[str]:
        return self.headers.get("location")

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status < 400


def parse_cookie_string(cookie_str: str) -> Dict[str, str]:
    """
    Разобрать значение Set-Cookie в словарь.

    Крошки разделяются "; ", ключ от значения - первым "=". Ключи и
    значения обрезаются по краям, отсутствующее значение - пустая строка.
    Повторный ключ перезаписывает предыдущий.

    Examples:
        >>> parse_cookie_string("a=1; b=2; c")
        {'a': '1', 'b': '2', 'c': ''}
    """
    cookies: Dict[str, str] = {}

    for crumb in cookie_str.split(COOKIE_SEPARATOR):
        name, _, value = crumb.partition("=")
        cookies[name.strip()] = value.strip()

    return cookies


def parse_status_line(line: str) -> Dict[str, Any]:
    """Разобрать status line. ParseError, если это не HTTP/x.y NNN."""
    match = _STATUS_LINE_RE.match(line)
    if match is None:
        raise ParseError(f"Malformed HTTP status line: {line[:100]!r}")

    return {
        "version": match.group("version"),
        "status": int(match.group("status")),
    }


def _check_content_length(headers: Dict[str, str], body: bytes) -> None:
    declared = headers.get("content-length")
    if declared is None:
        return

    try:
        expected = int(declared.strip())
    except ValueError:
        raise ParseError(f"Invalid Content-Length header: {declared!r}") from None

    if len(body) != expected:
        raise ParseError(
            f"Unexpected end of packet: got {len(body)} bytes, "
            f"Content-Length is {expected}"
        )


def parse_response(raw: Union[bytes, str], method: str) -> ResponseResult:
    """
    Превратить сырой ответ движка в ResponseResult.

    Args:
        raw: Status line + заголовки + пустая строка + тело
        method: HTTP метод запроса (для HEAD тело не разбирается)

    Returns:
        ResponseResult, тело - строка (JSON декодирует уже классификатор)

    Raises:
        ParseError: Битая status line или длина тела не совпала с Content-Length
    """
    if isinstance(raw, str):
        raw = raw.encode("utf-8")

    head, _, body = raw.partition(HEADER_BODY_SEPARATOR)
    lines = head.decode("iso-8859-1").split(HEADER_LINE_SEPARATOR)

    # Первая строка - всегда status line
    status_line = lines[0]
    status = parse_status_line(status_line)

    headers: Dict[str, str] = {}
    cookies: Optional[Dict[str, str]] = None

    for line in lines[1:]:
        name, sep, value = line.partition(":")
        if not sep:
            continue

        name = name.lower()
        headers[name] = value.lstrip()

        if name == "set-cookie":
            cookies = parse_cookie_string(value)

    result = ResponseResult(
        status=status["status"],
        version=status["version"],
        raw_status_line=status_line,
        headers=headers,
        cookies=cookies,
    )

    # У HEAD тела нет, что бы ни говорил Content-Length
    if method.upper() == "HEAD":
        return result

    _check_content_length(headers, body)
    result.body = body.decode("utf-8", errors="replace")

    return result
