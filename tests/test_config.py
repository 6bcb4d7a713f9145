import logging

import pytest

from kvsession.logging_config import PathFilter, get_logging_config
from kvsession.modules.config import ConfigModule


def test_defaults():
    config = ConfigModule(environ={"SESSION_SECRET": "s3cret"})

    assert config.get("redis_host") == "localhost"
    assert config.get("redis_port") == 6379
    assert config.get("redis_db") == 0
    assert config.get("redis_password") is None
    assert config.get("session_timeout") == 3600
    assert config.get("session_expiration") == 86400
    assert config.get("cookie_name") == "GOSESSIONID"
    assert config.get("cookie_secure") is False
    assert config.get("session_secret") == "s3cret"


def test_environment_overrides():
    config = ConfigModule(environ={
        "REDIS_HOST": "cache",
        "REDIS_PORT": "tcp://10.0.0.5:6380",
        "SESSION_TIMEOUT": "60",
        "SESSION_EXPIRATION": "120",
        "SESSION_COOKIE_NAME": "SID",
        "SESSION_COOKIE_SECURE": "true",
        "LOG_LEVEL": "debug",
    })

    assert config.get("redis_host") == "cache"
    assert config.get("redis_port") == 6380
    assert config.get("session_timeout") == 60
    assert config.get("session_expiration") == 120
    assert config.get("cookie_name") == "SID"
    assert config.get("cookie_secure") is True
    assert config.get("log_level") == "DEBUG"


def test_missing_secret_generates_random_key(caplog):
    with caplog.at_level(logging.WARNING, logger="kvsession.modules.config"):
        first = ConfigModule(environ={})
        second = ConfigModule(environ={})

    assert first.get("session_secret")
    assert first.get("session_secret") != second.get("session_secret")
    assert "SESSION_SECRET is not set" in caplog.text


@pytest.mark.parametrize("key", ["SESSION_TIMEOUT", "SESSION_EXPIRATION"])
def test_non_positive_windows_rejected(key):
    with pytest.raises(ValueError):
        ConfigModule(environ={key: "0"})


def _access_record(message: str) -> logging.LogRecord:
    return logging.LogRecord("uvicorn.access", logging.INFO, __file__, 1, message, None, None)


def test_path_filter_suppresses_health_checks():
    log_filter = PathFilter()

    assert log_filter.filter(_access_record('127.0.0.1:5000 - "GET /health HTTP/1.1" 200')) is False
    assert log_filter.filter(_access_record('127.0.0.1:5000 - "GET /session HTTP/1.1" 200')) is True


def test_path_filter_ignores_other_loggers():
    record = logging.LogRecord("kvsession", logging.INFO, __file__, 1, "GET /health ", None, None)

    assert PathFilter().filter(record) is True


def test_logging_config_level():
    config = get_logging_config("DEBUG")

    assert config["loggers"]["kvsession"]["level"] == "DEBUG"
    assert config["handlers"]["access"]["filters"] == ["path_filter"]
