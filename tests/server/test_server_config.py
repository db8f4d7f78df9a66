"""Tests for environment configuration loading."""
import logging
from pathlib import Path

import pytest

from notifyq.server.app import build_sender
from notifyq.server.config import (
    SenderConfig,
    _parse_bool,
    load_config_from_env,
)
from notifyq.queue import LogSender, WebhookSender

_ENV_VARS = (
    "SENDER_METHOD", "SENDER_URL", "SENDER_API_KEY", "SENDER_FROM_ADDRESS", "SENDER_TIMEOUT",
    "ADMIN_TOKEN", "DB_PATH", "SCHEDULER_ENABLED", "PORTAL_NAME", "PORTAL_URL",
    "QUEUE_BATCH_SIZE", "QUEUE_INTERVAL_SECONDS", "QUEUE_MAX_ATTEMPTS",
    "QUEUE_BACKOFF_MAX_SECONDS", "QUEUE_SEND_CONCURRENCY", "QUEUE_STALE_AFTER_SECONDS",
    "QUEUE_PERMANENT_ERROR_CODES", "QUEUE_MANUAL_RETRY_RESETS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestParseBool:
    @pytest.mark.parametrize("value", ["1", "true", "TRUE", "yes"])
    def test_truthy(self, value):
        assert _parse_bool(value, default=False) is True

    @pytest.mark.parametrize("value", ["0", "false", "No"])
    def test_falsy(self, value):
        assert _parse_bool(value, default=True) is False

    def test_empty_uses_default(self):
        assert _parse_bool("", default=True) is True

    def test_typo_uses_default_and_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert _parse_bool("ture", default=False) is False
        assert "Unrecognised boolean value" in caplog.text


class TestLoadConfigFromEnv:
    def test_defaults(self):
        config = load_config_from_env()
        assert config.sender.method == "log"
        assert config.queue.batch_size == 10
        assert config.queue.interval == 5.0
        assert config.queue.max_attempts == 3
        assert config.db_path == Path("data/notifyq.db")
        assert config.scheduler_enabled is True
        assert config.portal.name == "ALWR"

    def test_warns_without_admin_token(self, caplog):
        with caplog.at_level(logging.WARNING):
            load_config_from_env()
        assert "ADMIN_TOKEN" in caplog.text

    def test_reads_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SENDER_METHOD", "webhook")
        monkeypatch.setenv("SENDER_URL", "https://mail.example.com/send")
        monkeypatch.setenv("SENDER_API_KEY", "k")
        monkeypatch.setenv("ADMIN_TOKEN", "t")
        monkeypatch.setenv("DB_PATH", str(tmp_path / "q.db"))
        monkeypatch.setenv("SCHEDULER_ENABLED", "false")
        monkeypatch.setenv("QUEUE_BATCH_SIZE", "25")
        monkeypatch.setenv("QUEUE_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("QUEUE_PERMANENT_ERROR_CODES", "invalid_recipient, http_403")
        monkeypatch.setenv("QUEUE_MANUAL_RETRY_RESETS", "yes")

        config = load_config_from_env()

        assert config.sender == SenderConfig(
            method="webhook", url="https://mail.example.com/send", api_key="k",
        )
        assert config.admin_token == "t"
        assert config.db_path == tmp_path / "q.db"
        assert config.scheduler_enabled is False
        assert config.queue.batch_size == 25
        assert config.queue.max_attempts == 5
        assert config.queue.permanent_error_codes == frozenset({"invalid_recipient", "http_403"})
        assert config.queue.manual_retry_resets_attempts is True

    def test_unknown_sender_method(self, monkeypatch):
        monkeypatch.setenv("SENDER_METHOD", "carrier-pigeon")
        with pytest.raises(ValueError, match="SENDER_METHOD"):
            load_config_from_env()

    def test_webhook_requires_url(self, monkeypatch):
        monkeypatch.setenv("SENDER_METHOD", "webhook")
        with pytest.raises(ValueError, match="SENDER_URL"):
            load_config_from_env()

    def test_invalid_queue_values(self, monkeypatch):
        monkeypatch.setenv("QUEUE_BATCH_SIZE", "0")
        with pytest.raises(ValueError):
            load_config_from_env()

    def test_default_permanent_codes(self):
        assert load_config_from_env().queue.permanent_error_codes == frozenset({"invalid_recipient"})

    @pytest.mark.parametrize("value", ["none", " NONE "])
    def test_permanent_codes_can_be_disabled(self, monkeypatch, value):
        monkeypatch.setenv("QUEUE_PERMANENT_ERROR_CODES", value)
        assert load_config_from_env().queue.permanent_error_codes == frozenset()

    def test_stale_cutoff_must_exceed_sender_timeout(self, monkeypatch):
        monkeypatch.setenv("QUEUE_STALE_AFTER_SECONDS", "30")
        monkeypatch.setenv("SENDER_TIMEOUT", "30")
        with pytest.raises(ValueError, match="stale_after"):
            load_config_from_env()


class TestBuildSender:
    def test_log(self):
        assert isinstance(build_sender(SenderConfig()), LogSender)

    def test_webhook(self):
        sender = build_sender(SenderConfig(method="webhook", url="https://mail.example.com"))
        assert isinstance(sender, WebhookSender)

    def test_unknown(self):
        with pytest.raises(ValueError):
            build_sender(SenderConfig(method="fax"))
