import json
import logging
from pathlib import Path

import pytest

from filog.core.config import CONFIG_ENV_VAR, LoggerConfig, default_config_path, load_config_file, parse_config
from filog.core.errors import ConfigurationError
from filog.core.models import ApiKey, BasicAuth, Cookie


def test_parse_flat_transport_list():
    cfg = parse_config([{"client_id": "a", "url": "https://x/y", "logType": "ERROR"}])

    assert isinstance(cfg, LoggerConfig)
    assert cfg.source is None
    assert cfg.transports[0].client_id == "a"
    assert cfg.transports[0].log_type == "ERROR"
    assert cfg.transports[0].credentials == ApiKey("x-client-id", "a")


def test_parse_extended_object():
    cfg = parse_config(
        {
            "source": {"app_name": "svc", "app_version": "2.0.0"},
            "environment": "production",
            "timeout": 2,
            "transports": [
                {"client_id": "a", "url": "https://x/y", "logType": "ANY", "auth": {"type": "BasicAuth", "value": "Basic abc"}},
                {"client_id": "b", "url": "amqp://mq/", "logType": "ERROR", "queue": "errors"},
            ],
        }
    )

    assert cfg.environment == "production"
    assert cfg.source.app_name == "svc"
    assert cfg.timeout == 2.0
    assert cfg.transports[0].credentials == BasicAuth("Basic abc")
    assert cfg.transports[1].queue == "errors"


def test_parse_cookie_and_api_key_auth():
    cfg = parse_config(
        [
            {"client_id": "a", "url": "https://x/y", "auth": {"type": "Cookie", "name": "sid", "value": "v"}},
            {"client_id": "b", "url": "https://x/y", "auth": {"type": "ApiKey", "name": "x-api-key", "value": "k"}},
        ]
    )

    assert cfg.transports[0].credentials == Cookie("sid", "v")
    assert cfg.transports[0].log_type == "ANY"
    assert cfg.transports[1].credentials.headers() == {"x-api-key": "k"}


@pytest.mark.parametrize(
    "transport",
    [
        {"client_id": "a", "logType": "ANY"},
        {"client_id": "a", "url": "https://x/y", "logType": "FATAL"},
        {"client_id": "a", "url": "https://x/y", "logType": "error"},
        {"client_id": "a", "url": "https://x/y", "auth": {"type": "Bearer", "value": "t"}},
        {"client_id": "a", "url": "https://x/y", "auth": {"type": "ApiKey", "value": "t"}},
        "https://x/y",
    ],
)
def test_malformed_transport_raises(transport):
    with pytest.raises(ConfigurationError):
        parse_config([transport])


def test_non_positive_timeout_raises():
    with pytest.raises(ConfigurationError, match="timeout must be positive"):
        parse_config({"transports": [], "timeout": 0})


def test_unsupported_scheme_is_accepted_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="filog"):
        cfg = parse_config([{"client_id": "a", "url": "ftp://x/y", "logType": "ANY"}])

    assert cfg.transports[0].url == "ftp://x/y"
    assert "unsupported url" in caplog.text


def test_load_config_file_missing():
    with pytest.raises(ConfigurationError, match="config file not found"):
        load_config_file(Path("does-not-exist.json"))


def test_load_config_file_invalid_json(tmp_path):
    path = tmp_path / "filog.json"
    path.write_text("{invalid json}", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="invalid JSON"):
        load_config_file(path)


def test_load_config_file_ok(tmp_path):
    path = tmp_path / "filog.json"
    path.write_text(json.dumps({"environment": "dev", "transports": []}), encoding="utf-8")

    assert load_config_file(path).environment == "dev"


def test_default_config_path_from_env(monkeypatch):
    monkeypatch.setenv(CONFIG_ENV_VAR, "/etc/filog.json")
    assert default_config_path() == Path("/etc/filog.json")
    monkeypatch.delenv(CONFIG_ENV_VAR)
    assert default_config_path() is None


@pytest.mark.parametrize("value", ["false", "true", 1, 0])
def test_blocking_must_be_a_bool(value):
    with pytest.raises(ConfigurationError, match="blocking must be true or false"):
        parse_config({"transports": [], "blocking": value})


@pytest.mark.parametrize("value", [0.5, 0, -1, True, "2"])
def test_max_workers_must_be_positive_int(value):
    with pytest.raises(ConfigurationError, match="max_workers must be a positive integer"):
        parse_config({"transports": [], "max_workers": value})


def test_blocking_and_max_workers_defaults():
    cfg = parse_config({"transports": [], "blocking": None})

    assert cfg.blocking is False
    assert cfg.max_workers == 2
