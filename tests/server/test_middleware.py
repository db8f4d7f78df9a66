"""Tests for request logging helpers."""
from notifyq.server.middleware.logging import sanitize_dict


class TestSanitizeDict:
    def test_redacts_sensitive_fields(self):
        data = {"recipient": "ada@example.com", "body": "<p>secret</p>", "API_KEY": "k"}
        assert sanitize_dict(data) == {
            "recipient": "ada@example.com",
            "body": "[REDACTED]",
            "API_KEY": "[REDACTED]",
        }

    def test_nested(self):
        data = {"details": {"reset_token": "abc", "message_id": "m-1"}}
        assert sanitize_dict(data) == {"details": {"reset_token": "[REDACTED]", "message_id": "m-1"}}

    def test_lists_are_walked(self):
        data = {"items": [{"api_key": "k"}, "plain"]}
        assert sanitize_dict(data) == {"items": [{"api_key": "[REDACTED]"}, "plain"]}
