# src/couch_http/core/error_handler.py

import json

from .config import BodyDecoding
from .exceptions import database_error_for_status
from .parser import ResponseResult

JSON_CONTENT_TYPE = "application/json"
HEAD_ERROR_MESSAGE = "HTTP/database error without message body"

# Управляющие символы и точка; пробел не обрезается
REASON_STRIP_CHARS = "\t\n\r\0\x0b."


def _capitalize_first(text: str) -> str:
    """Только первая буква: 'not_found' -> 'Not_found'."""
    return text[:1].upper() + text[1:]


def format_database_error(error: str, reason) -> str:
    """Сообщение вида 'Not_found (missing)'."""
    reason_text = str(reason) if reason is not None else ""
    return f"{_capitalize_first(str(error))} ({reason_text.strip(REASON_STRIP_CHARS)})"


class ResponseClassifier:
    """Класс для разделения ответов на успешные и ошибки CouchDB"""

    def __init__(self, decoding: BodyDecoding = BodyDecoding.STRUCTURED):
        self.decoding = decoding

    def classify(self, result: ResponseResult, method: str) -> ResponseResult:
        """Возвращает результат или бросает DatabaseError"""

        # У HEAD нет тела, так что причину ошибки достать неоткуда
        if method.upper() == "HEAD":
            if result.status >= 400:
                raise database_error_for_status(HEAD_ERROR_MESSAGE, result.status)
            return result

        if result.content_type != JSON_CONTENT_TYPE:
            return result

        decoded = self._decode(result.body)
        if decoded is None:
            return result

        if isinstance(decoded, dict) and decoded.get("error"):
            message = format_database_error(decoded["error"], decoded.get("reason"))
            raise database_error_for_status(message, result.status)

        if self.decoding is BodyDecoding.STRUCTURED:
            result.body = decoded

        return result

    @staticmethod
    def _decode(body):
        """JSON или None. Битый или слишком глубокий JSON - не ошибка, тело вернётся как есть."""
        if not isinstance(body, (str, bytes)) or not body:
            return None
        try:
            return json.loads(body)
        except (ValueError, RecursionError):
            return None
