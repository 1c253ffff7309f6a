"""
Configuration, TLS, redirects and logging.
"""

from src.couch_http import CouchTransport, LoggingConfig, TransportConfig


def tls_with_ca_bundle():
    """https с проверкой сертификата по своему CA."""
    print("\n=== TLS ===")

    config = TransportConfig.create(
        host="couch.example.com",
        port=6984,
        use_ssl=True,
        cert_path="/etc/ssl/couch-ca.pem",
        open_timeout=5,
    )
    transport = CouchTransport(config=config)
    print(transport)


def timeouts_round_trip():
    """Таймауты можно сохранить и применить к другому transport'у."""
    print("\n=== Timeouts ===")

    source = CouchTransport().with_open_timeout(3).with_rw_timeout(0, 500000)
    saved = source.get_timeouts()
    print(f"Saved: {saved}")

    copy = CouchTransport(host="replica.local").with_timeouts_from_dict(saved)
    print(f"Applied: {copy.get_timeouts()}")


def logging_and_redirects():
    """JSON логи в stderr; редиректы видны как 'Following redirect'."""
    print("\n=== Logging ===")

    config = TransportConfig(
        max_redirects=5,
        logging=LoggingConfig.create(level="DEBUG", format="json"),
    )

    with CouchTransport(config=config) as transport:
        result = transport.execute("GET", "/_utils")
        print(f"Status: {result.status}")


if __name__ == "__main__":
    tls_with_ca_bundle()
    timeouts_round_trip()
    logging_and_redirects()
