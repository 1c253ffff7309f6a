"""
Tests for RequestsEngine and raw response reconstruction.
"""

import errno

import pytest
import requests
import responses

from src.couch_http.core.engine import (
    EngineRequest,
    EngineResult,
    RequestsEngine,
    engine_error_code,
)
from src.couch_http.core.parser import parse_response


URL = "http://127.0.0.1:5984"


class TestEngineErrorCode:

    def test_timeout(self):
        assert engine_error_code(requests.exceptions.ReadTimeout()) == 28
        assert engine_error_code(requests.exceptions.ConnectTimeout()) == 28

    def test_ssl(self):
        assert engine_error_code(requests.exceptions.SSLError("bad cert")) == 35

    def test_too_many_redirects(self):
        assert engine_error_code(requests.exceptions.TooManyRedirects()) == 47

    def test_connection_refused_in_cause_chain(self):
        try:
            try:
                raise ConnectionRefusedError(errno.ECONNREFUSED, "refused")
            except ConnectionRefusedError as inner:
                raise requests.exceptions.ConnectionError("wrapped") from inner
        except requests.exceptions.ConnectionError as e:
            assert engine_error_code(e) == 7

    def test_connection_refused_errno(self):
        error = requests.exceptions.ConnectionError(OSError(errno.ECONNREFUSED, "nope"))
        assert engine_error_code(error) == 7

    def test_other_connection_error(self):
        error = requests.exceptions.ConnectionError("Connection reset by peer")
        assert engine_error_code(error) == 56


class TestRequestsEngine:

    @responses.activate
    def test_returns_raw_response(self):
        responses.add(
            responses.GET,
            f"{URL}/_up",
            body='{"status":"ok"}',
            status=200,
            headers={"Server": "CouchDB/3.3.3"},
            content_type="application/json",
        )

        result = RequestsEngine().perform(EngineRequest(method="GET", url=f"{URL}/_up"))

        assert result.ok
        parsed = parse_response(result.raw, "GET")
        assert parsed.status == 200
        assert parsed.headers["server"] == "CouchDB/3.3.3"
        assert parsed.headers["content-type"] == "application/json"
        assert parsed.body == '{"status":"ok"}'

    @responses.activate
    def test_sends_headers_and_body_verbatim(self):
        responses.add(responses.PUT, f"{URL}/db/doc", body="{}", status=201)

        RequestsEngine().perform(EngineRequest(
            method="PUT",
            url=f"{URL}/db/doc",
            headers=[("Connection", "close"), ("Content-Type", "application/json")],
            body='{"name":"ёж"}',
        ))

        sent = responses.calls[0].request
        assert sent.headers["Connection"] == "close"
        assert sent.headers["Content-Type"] == "application/json"
        assert "Accept-Encoding" not in sent.headers
        assert sent.body == '{"name":"ёж"}'.encode("utf-8")

    @responses.activate
    def test_later_headers_override_earlier(self):
        responses.add(responses.GET, f"{URL}/", body="{}", status=200)

        RequestsEngine().perform(EngineRequest(
            method="GET",
            url=f"{URL}/",
            headers=[("Connection", "close"), ("connection", "keep-alive")],
        ))

        assert responses.calls[0].request.headers["Connection"] == "keep-alive"

    @responses.activate
    def test_head_skips_body(self):
        responses.add(responses.HEAD, f"{URL}/db", status=200, headers={"ETag": '"1-a"'})

        result = RequestsEngine().perform(EngineRequest(method="HEAD", url=f"{URL}/db", no_body=True))

        parsed = parse_response(result.raw, "HEAD")
        assert parsed.status == 200
        assert parsed.headers["etag"] == '"1-a"'
        assert parsed.body == ""

    @responses.activate
    def test_redirect_not_followed_by_default(self):
        responses.add(
            responses.GET,
            f"{URL}/old",
            status=301,
            headers={"Location": f"{URL}/new"},
        )

        result = RequestsEngine().perform(EngineRequest(method="GET", url=f"{URL}/old"))

        parsed = parse_response(result.raw, "GET")
        assert parsed.status == 301
        assert parsed.location == f"{URL}/new"
        assert len(responses.calls) == 1

    @responses.activate
    def test_transport_failure_becomes_error_code(self):
        responses.add(
            responses.GET,
            f"{URL}/slow",
            body=requests.exceptions.ReadTimeout("Read timed out"),
        )

        result = RequestsEngine().perform(EngineRequest(method="GET", url=f"{URL}/slow"))

        assert not result.ok
        assert result.error_code == 28
        assert "Read timed out" in result.error_message

    def test_connection_refused_on_closed_port(self):
        result = RequestsEngine().perform(EngineRequest(
            method="GET",
            url="http://127.0.0.1:1/",
            timeout=(2, 2),
        ))

        assert result == EngineResult(error_code=7, error_message=result.error_message)
