"""
End-to-end tests: CouchTransport + RequestsEngine, HTTP mocked with responses.
"""

import pytest
import requests
import responses

from src.couch_http import CouchTransport, TransportConfig
from src.couch_http.core.exceptions import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    TransportError,
    TransportErrorKind,
)


URL = "http://127.0.0.1:5984"


@responses.activate
def test_welcome_document_decoded(transport):
    responses.add(
        responses.GET,
        f"{URL}/",
        json={"couchdb": "Welcome", "version": "3.3.3"},
        status=200,
    )

    result = transport.execute("GET", "/")

    assert result.status == 200
    assert result.version == "1.1"
    assert result.body == {"couchdb": "Welcome", "version": "3.3.3"}
    assert responses.calls[0].request.headers["Connection"] == "close"


@responses.activate
def test_missing_document(transport):
    responses.add(
        responses.GET,
        f"{URL}/missing",
        json={"error": "not_found", "reason": "missing"},
        status=404,
    )

    with pytest.raises(NotFoundError) as exc_info:
        transport.execute("GET", "/missing")

    assert exc_info.value.message == "Not_found (missing)"
    assert exc_info.value.code == 404


@responses.activate
def test_update_conflict(transport):
    responses.add(
        responses.PUT,
        f"{URL}/db/doc",
        json={"error": "conflict", "reason": "Document update conflict."},
        status=409,
    )

    with pytest.raises(ConflictError, match=r"^Conflict \(Document update conflict\)$"):
        transport.execute("PUT", "/db/doc", body='{"_rev":"1-a"}',
                          headers={"Content-Type": "application/json"})

    sent = responses.calls[0].request
    assert sent.body == b'{"_rev":"1-a"}'
    assert sent.headers["Content-Type"] == "application/json"


@responses.activate
def test_head_error_has_generic_message(transport):
    responses.add(responses.HEAD, f"{URL}/db/doc", status=404,
                  content_type="application/json")

    with pytest.raises(DatabaseError, match="HTTP/database error without message body"):
        transport.execute("HEAD", "/db/doc")


@responses.activate
def test_session_cookie(transport):
    responses.add(
        responses.POST,
        f"{URL}/_session",
        json={"ok": True, "name": "admin", "roles": ["_admin"]},
        status=200,
        headers={"Set-Cookie": "AuthSession=YWRtaW46NjU; Version=1; Path=/; HttpOnly"},
    )

    result = transport.execute(
        "POST", "/_session",
        body="name=admin&password=secret",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )

    assert result.cookies["AuthSession"] == "YWRtaW46NjU"
    assert result.cookies["Path"] == "/"
    assert result.body["ok"] is True


@responses.activate
def test_redirect_to_replica(transport):
    responses.add(
        responses.GET,
        f"{URL}/db/doc",
        status=301,
        headers={"Location": "http://replica.local:5984/db/doc"},
    )
    responses.add(
        responses.GET,
        "http://replica.local:5984/db/doc",
        json={"_id": "doc", "_rev": "1-a"},
        status=200,
    )

    result = transport.execute("GET", "/db/doc", headers={"Authorization": "Basic YWRtaW46cGFzcw=="})

    assert result.body == {"_id": "doc", "_rev": "1-a"}
    assert len(responses.calls) == 2
    second = responses.calls[1].request
    assert second.headers["Host"] == "replica.local:5984"
    assert second.headers["Authorization"] == "Basic YWRtaW46cGFzcw=="
    assert transport.identity.host == "127.0.0.1"


@responses.activate
def test_relative_redirect_same_server(transport):
    responses.add(responses.GET, f"{URL}/db/_design/app/_show/a",
                  status=302, headers={"Location": "b"})
    responses.add(responses.GET, f"{URL}/db/_design/app/_show/b",
                  body="<p>b</p>", status=200, content_type="text/html")

    result = transport.execute("GET", "/db/_design/app/_show/a")

    assert result.body == "<p>b</p>"
    assert result.content_type == "text/html"


@responses.activate
def test_read_timeout(transport):
    responses.add(
        responses.GET,
        f"{URL}/db/_changes",
        body=requests.exceptions.ReadTimeout("Read timed out"),
    )

    with pytest.raises(TransportError) as exc_info:
        transport.with_rw_timeout(0, 100000).execute("GET", "/db/_changes")

    assert exc_info.value.kind == TransportErrorKind.OTHER
    assert exc_info.value.code == 28


def test_connection_refused():
    transport = CouchTransport(config=TransportConfig.create(port=1, open_timeout=2))

    with pytest.raises(TransportError) as exc_info:
        transport.execute("GET", "/")

    assert exc_info.value.kind == TransportErrorKind.CONNECTION_REFUSED
    assert "Connection refused" in str(exc_info.value)
