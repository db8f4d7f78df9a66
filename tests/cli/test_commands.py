"""Tests for CLI commands."""
import asyncio
import json
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from typer.testing import CliRunner

from notifyq.cli.main import app
from notifyq.cli.utils.config import ConfigManager
from notifyq.queue import SqliteQueueStore
from notifyq.state import DatabaseManager, MessageStatus, NotificationKind, QueuedMessage

runner = CliRunner()


@pytest.fixture
def config_dir(tmp_path, monkeypatch) -> Path:
    directory = tmp_path / "notifyq"
    monkeypatch.setattr(ConfigManager, "DEFAULT_DIR", directory)
    return directory


@pytest.fixture
def initialized(config_dir) -> Path:
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0
    return config_dir


def _invoke_json(args: list[str]) -> dict:
    result = runner.invoke(app, [*args, "--json"])
    assert result.exit_code == 0, result.stdout
    return json.loads(result.stdout)


def _insert_failed(db_path: Path) -> str:
    return _insert(db_path, MessageStatus.FAILED, attempt_count=3, last_error="smtp down")


def _insert(db_path: Path, status: MessageStatus, age: float = 0, **fields) -> str:
    now = datetime.now(timezone.utc) - timedelta(seconds=age)
    message = QueuedMessage(
        message_id=str(uuid.uuid4()),
        recipient="ada@example.com",
        subject="Welcome",
        body="<p>Hi</p>",
        kind=NotificationKind.ACCOUNT_CREATED,
        created_at=now,
        updated_at=now,
        next_attempt_at=now,
        status=status,
        **fields,
    )

    async def _write() -> None:
        db = DatabaseManager(db_path)
        await db.initialize()
        await SqliteQueueStore(db).insert(message)
        await db.close()

    asyncio.run(_write())
    return message.message_id


class TestInitCommand:
    def test_init_creates_config_and_database(self, config_dir):
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert "initialized" in result.stdout
        assert (config_dir / "config.yaml").exists()
        assert (config_dir / "notifyq.db").exists()

    def test_init_json_output(self, config_dir, tmp_path):
        data = _invoke_json(["init", "--db-path", str(tmp_path / "custom.db")])
        assert data["status"] == "initialized"
        assert data["sender"] == "log"
        assert data["db_path"] == str(tmp_path / "custom.db")

    def test_init_refuses_overwrite(self, initialized):
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_init_force_overwrites(self, initialized):
        result = runner.invoke(app, ["init", "--force"])
        assert result.exit_code == 0

    def test_webhook_requires_url(self, config_dir):
        result = runner.invoke(app, ["init", "--sender", "webhook"])
        assert result.exit_code == 2
        assert "--url" in result.stdout

    def test_unknown_sender(self, config_dir):
        result = runner.invoke(app, ["init", "--sender", "fax"])
        assert result.exit_code == 2

    def test_webhook_with_key_is_private(self, config_dir):
        result = runner.invoke(
            app,
            ["init", "--sender", "webhook", "--url", "https://mail.example.com/send", "--api-key", "k"],
        )
        assert result.exit_code == 0
        assert ((config_dir / "config.yaml").stat().st_mode & 0o777) == 0o600


class TestSendCommand:
    def test_requires_init(self, config_dir):
        result = runner.invoke(app, ["send", "-t", "ada@example.com", "-s", "S", "-b", "B"])
        assert result.exit_code == 1
        assert "notifyq init" in result.stdout

    def test_queues_message(self, initialized):
        data = _invoke_json(["send", "-t", "ada@example.com", "-s", "Hello", "-b", "<p>Hi</p>"])
        assert data["status"] == "queued"
        listed = _invoke_json(["list"])
        assert listed["count"] == 1
        assert listed["messages"][0]["message_id"] == data["message_id"]
        assert listed["messages"][0]["status"] == "pending"

    def test_rejects_bad_address(self, initialized):
        result = runner.invoke(app, ["send", "-t", "nope", "-s", "S", "-b", "B"])
        assert result.exit_code == 2
        assert "recipient" in result.stdout


class TestProcessAndStats:
    def test_process_delivers_with_log_sender(self, initialized):
        for i in range(3):
            _invoke_json(["send", "-t", f"u{i}@example.com", "-s", "S", "-b", "B"])

        totals = _invoke_json(["process", "--cycles", "5", "--until-empty"])
        assert totals["sent"] == 3
        assert totals["cycles"] == 2
        assert totals["error"] is None

        stats = _invoke_json(["stats"])
        assert stats == {"pending": 0, "processing": 0, "sent": 3, "failed": 0, "total": 3}

    def test_process_leaves_in_flight_claims_alone(self, initialized):
        _insert(initialized / "notifyq.db", MessageStatus.PROCESSING, age=3600, attempt_count=1)

        totals = _invoke_json(["process"])
        assert totals["recovered"] == 0
        assert totals["claimed"] == 0

    def test_process_recover_stale(self, initialized):
        message_id = _insert(
            initialized / "notifyq.db", MessageStatus.PROCESSING, age=3600, attempt_count=1,
        )

        totals = _invoke_json(["process", "--recover-stale"])
        assert totals["recovered"] == 1
        assert totals["sent"] == 1

        shown = _invoke_json(["show", message_id])
        assert shown["status"] == "sent"
        assert shown["attempt_count"] == 1

    def test_process_rejects_zero_cycles(self, initialized):
        result = runner.invoke(app, ["process", "--cycles", "0"])
        assert result.exit_code == 2

    def test_stats_table(self, initialized):
        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 0
        assert "Delivery Stats" in result.stdout

    def test_stats_not_initialized_json(self, config_dir):
        result = runner.invoke(app, ["stats", "--json"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["status"] == "not_initialized"


class TestListCommand:
    def test_empty(self, initialized):
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "No notifications" in result.stdout

    def test_filter_by_status(self, initialized):
        failed_id = _insert_failed(initialized / "notifyq.db")
        _invoke_json(["send", "-t", "ada@example.com", "-s", "S", "-b", "B"])
        data = _invoke_json(["list", "--status", "failed"])
        assert [m["message_id"] for m in data["messages"]] == [failed_id]

    def test_unknown_status(self, initialized):
        result = runner.invoke(app, ["list", "--status", "bounced"])
        assert result.exit_code == 2


class TestShowCommand:
    def test_show_message(self, initialized):
        failed_id = _insert_failed(initialized / "notifyq.db")
        data = _invoke_json(["show", failed_id, "--body"])
        assert data["status"] == "failed"
        assert data["last_error"] == "smtp down"
        assert data["body"] == "<p>Hi</p>"

    def test_invalid_id(self, initialized):
        result = runner.invoke(app, ["show", "not-a-uuid"])
        assert result.exit_code == 2

    def test_unknown_id(self, initialized):
        result = runner.invoke(app, ["show", str(uuid.uuid4())])
        assert result.exit_code == 1
        assert "not found" in result.stdout


class TestRetryCommand:
    def test_retry_failed(self, initialized):
        failed_id = _insert_failed(initialized / "notifyq.db")
        data = _invoke_json(["retry", failed_id])
        assert data == {"status": "pending", "message_id": failed_id, "attempt_count": 4}

    def test_retry_pending_rejected(self, initialized):
        queued = _invoke_json(["send", "-t", "ada@example.com", "-s", "S", "-b", "B"])
        result = runner.invoke(app, ["retry", queued["message_id"]])
        assert result.exit_code == 1
        assert "Only failed notifications can be retried" in result.stdout

    def test_retry_unknown(self, initialized):
        result = runner.invoke(app, ["retry", str(uuid.uuid4())])
        assert result.exit_code == 1
