"""Tests for CLI input validation."""
import pytest

from notifyq.cli.utils.validation import validate_message_id, validate_url


class TestValidateMessageId:
    def test_normalises_uuid(self):
        value = " 550E8400-E29B-41D4-A716-446655440000 "
        assert validate_message_id(value) == "550e8400-e29b-41d4-a716-446655440000"

    @pytest.mark.parametrize("value", ["", "   ", "not-a-uuid"])
    def test_rejects(self, value):
        with pytest.raises(ValueError):
            validate_message_id(value)


class TestValidateUrl:
    def test_accepts_http_and_https(self):
        assert validate_url("https://mail.example.com") == "https://mail.example.com"
        assert validate_url(" http://localhost:8025 ") == "http://localhost:8025"

    @pytest.mark.parametrize("value", ["", "ftp://example.com", "example.com", "https://" + "a" * 2050])
    def test_rejects(self, value):
        with pytest.raises(ValueError):
            validate_url(value)
