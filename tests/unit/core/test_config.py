"""Тесты для системы конфигурации."""

import pytest
from src.couch_http.core.config import (
    AdapterIdentity,
    BodyDecoding,
    SSLConfig,
    TimeoutConfig,
    TransportConfig,
    format_host,
)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TimeoutConfig
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def test_timeout_config_defaults():
    """По умолчанию таймауты не заданы."""
    config = TimeoutConfig()
    assert config.open is None
    assert config.rw_seconds is None
    assert config.rw_microseconds is None
    assert config.as_requests_timeout() == (None, None)

def test_timeout_config_custom():
    config = TimeoutConfig(open=5, rw_seconds=30, rw_microseconds=250000)
    assert config.open == 5
    assert config.read_write == 30.25
    assert config.as_requests_timeout() == (5, 30.25)

def test_timeout_config_zero_seconds_with_microseconds():
    """rw_seconds может быть 0, если есть микросекунды."""
    config = TimeoutConfig(rw_seconds=0, rw_microseconds=500000)
    assert config.read_write == 0.5

@pytest.mark.parametrize("seconds, microseconds", [
    (0, 0),
    (-1, 10),
    (1, -1),
    ("1", 0),
    (1.5, 0),
])
def test_timeout_config_invalid_read_write(seconds, microseconds):
    with pytest.raises(ValueError):
        TimeoutConfig(rw_seconds=seconds, rw_microseconds=microseconds)

@pytest.mark.parametrize("value", [0, -3, 2.5, True, "5"])
def test_timeout_config_invalid_open(value):
    with pytest.raises(ValueError, match="open timeout must be a positive integer"):
        TimeoutConfig(open=value)

def test_timeout_config_read_write_set_together():
    with pytest.raises(ValueError, match="must be set together"):
        TimeoutConfig(rw_seconds=5)

def test_timeout_config_immutable():
    config = TimeoutConfig()
    with pytest.raises(Exception):  # frozen dataclass
        config.open = 10

def test_timeout_config_with_methods_return_new_instance():
    config = TimeoutConfig()
    updated = config.with_open(3).with_read_write(10, 0)

    assert config.open is None
    assert updated.open == 3
    assert updated.rw_seconds == 10

def test_timeout_config_dict_round_trip():
    """as_dict() -> from_dict() на пустом конфиге даёт тот же конфиг."""
    config = TimeoutConfig(open=4, rw_seconds=0, rw_microseconds=750000)
    restored = TimeoutConfig.from_dict(config.as_dict())

    assert restored == config
    assert restored.as_requests_timeout() == config.as_requests_timeout()

def test_timeout_config_from_dict_is_lax():
    """Нецелые значения игнорируются, микросекунды по умолчанию 0."""
    config = TimeoutConfig.from_dict({
        'open': "soon",
        'rw_seconds': 7,
        'rw_microseconds': None,
    })
    assert config.open is None
    assert config.rw_seconds == 7
    assert config.rw_microseconds == 0

def test_timeout_config_from_dict_overlays_base():
    base = TimeoutConfig(open=9)
    config = TimeoutConfig.from_dict({'rw_seconds': 2}, base=base)
    assert config.open == 9
    assert config.rw_seconds == 2

def test_timeout_config_from_dict_rejects_non_mapping():
    with pytest.raises(ValueError, match="Expected a mapping"):
        TimeoutConfig.from_dict([("open", 1)])

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SSLConfig / AdapterIdentity
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def test_ssl_config_without_cert_skips_verification():
    ssl = SSLConfig(enabled=True)
    assert ssl.protocol == "https"
    assert ssl.verify is False

def test_ssl_config_with_cert_verifies():
    ssl = SSLConfig(enabled=True, cert_path="/etc/ssl/couch-ca.pem")
    assert ssl.verify == "/etc/ssl/couch-ca.pem"

def test_identity_equivalence_ignores_cert():
    a = AdapterIdentity("couch.local", 5984, "http", cert_path="/a.pem")
    b = AdapterIdentity("couch.local", 5984, "http")
    assert a.equivalent(b)

@pytest.mark.parametrize("other", [
    AdapterIdentity("replica.local", 5984, "http"),
    AdapterIdentity("couch.local", 6984, "http"),
    AdapterIdentity("couch.local", 5984, "https"),
])
def test_identity_not_equivalent(other):
    assert not AdapterIdentity("couch.local", 5984, "http").equivalent(other)

@pytest.mark.parametrize("host, base_url", [
    ("::1", "http://[::1]:5984"),
    ("[fe80::2]", "http://[fe80::2]:5984"),
    ("couch.local", "http://couch.local:5984"),
])
def test_identity_base_url_brackets_ipv6(host, base_url):
    assert AdapterIdentity(host, 5984, "http").base_url == base_url

def test_format_host():
    assert format_host("::1") == "[::1]"
    assert format_host("[::1]") == "[::1]"
    assert format_host("10.0.0.2") == "10.0.0.2"

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TransportConfig
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def test_transport_config_defaults():
    config = TransportConfig()
    assert config.host == "127.0.0.1"
    assert config.port == 5984
    assert config.protocol == "http"
    assert config.decoding is BodyDecoding.STRUCTURED
    assert config.follow_redirects is False
    assert config.identity.base_url == "http://127.0.0.1:5984"

def test_transport_config_create():
    config = TransportConfig.create(
        host="couch.local",
        port=6984,
        use_ssl=True,
        cert_path="/ca.pem",
        open_timeout=5,
        rw_timeout=(30, 0),
        decode=False,
    )
    assert config.identity == AdapterIdentity("couch.local", 6984, "https", "/ca.pem")
    assert config.timeout.open == 5
    assert config.timeout.rw_seconds == 30
    assert config.decoding is BodyDecoding.RAW

@pytest.mark.parametrize("kwargs", [
    {"host": ""},
    {"port": 0},
    {"port": 70000},
    {"max_redirects": -1},
])
def test_transport_config_validation(kwargs):
    with pytest.raises(ValueError):
        TransportConfig(**kwargs)

def test_transport_config_decoding_from_string():
    assert TransportConfig(decoding="raw").decoding is BodyDecoding.RAW

def test_transport_config_builders_copy_everything_else():
    config = TransportConfig(timeout=TimeoutConfig(open=3), max_redirects=4)
    moved = config.with_endpoint("replica.local", 443).with_ssl(True)

    assert moved.identity.base_url == "https://replica.local:443"
    assert moved.timeout == config.timeout
    assert moved.max_redirects == 4
    assert config.host == "127.0.0.1"
