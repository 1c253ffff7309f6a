"""
Pytest configuration and fixtures for couch-http-core tests.
"""

import pytest
import responses as responses_lib

from src.couch_http.core.config import TransportConfig
from src.couch_http.core.engine import EngineResult, HTTPEngine
from src.couch_http.core.logging.config import LoggingConfig
from src.couch_http.core.transport import CouchTransport


class FakeEngine(HTTPEngine):
    """Движок без сети: отдаёт заранее заданные EngineResult и запоминает запросы."""

    def __init__(self, *results: EngineResult):
        self.results = list(results)
        self.requests = []

    def queue(self, result: EngineResult) -> "FakeEngine":
        self.results.append(result)
        return self

    def perform(self, request):
        self.requests.append(request)
        if not self.results:
            raise AssertionError(f"Unexpected engine call: {request.method} {request.url}")
        return self.results.pop(0)


def build_raw(status=200, headers=None, body="", reason="OK", version="1.1"):
    """Собрать сырой ответ: status line, заголовки, пустая строка, тело."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    lines = [f"HTTP/{version} {status} {reason}"]
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    return "\r\n".join(lines).encode("iso-8859-1") + b"\r\n\r\n" + body


@pytest.fixture
def base_url():
    """Base URL of the default transport."""
    return "http://127.0.0.1:5984"


@pytest.fixture
def mock_responses():
    """Mock HTTP responses using responses library."""
    with responses_lib.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def raw_response():
    """Фабрика сырых ответов для FakeEngine."""
    return build_raw


@pytest.fixture
def json_response():
    """Фабрика JSON ответов с корректным Content-Length."""
    def _make(status, body, extra_headers=None, reason="OK"):
        headers = {
            "Content-Type": "application/json",
            "Content-Length": str(len(body.encode("utf-8"))),
        }
        headers.update(extra_headers or {})
        return EngineResult(raw=build_raw(status, headers, body, reason=reason))
    return _make


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def transport():
    """Transport with the real requests engine."""
    transport = CouchTransport(config=TransportConfig())
    yield transport
    transport.close()


@pytest.fixture
def fake_transport(fake_engine):
    """Transport wired to FakeEngine."""
    transport = CouchTransport(config=TransportConfig(), engine=fake_engine)
    yield transport
    transport.close()


@pytest.fixture
def logging_config_with_file(tmp_path):
    """
    LoggingConfig fixture with JSON file logging enabled.

    Uses temporary directory for log files to avoid cleanup issues.
    """
    log_file = tmp_path / "couch.log"
    return LoggingConfig.create(
        level="DEBUG",
        format="json",
        enable_console=False,
        enable_file=True,
        file_path=str(log_file)
    )
