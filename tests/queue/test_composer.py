"""Tests for notification rendering and the composer facade."""
from datetime import date, datetime, timezone

import pytest

from notifyq.queue import NotificationComposer, Portal, QueueEngine, ValidationError
from notifyq.queue.composer import (
    format_amount,
    format_date,
    format_timestamp,
    render_account_created,
    render_emergency_access_alert,
    render_password_reset,
)
from notifyq.state import MessageStatus, NotificationKind


@pytest.fixture
def composer(store, sender, clock) -> NotificationComposer:
    return NotificationComposer(QueueEngine(store, sender, clock=clock))


class TestFormatting:
    def test_format_date(self):
        assert format_date(date(2026, 3, 5)) == "March 05, 2026"

    def test_format_timestamp_converts_to_utc(self):
        from datetime import timedelta

        local = datetime(2026, 3, 5, 16, 30, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(local) == "March 05, 2026 at 14:30 UTC"

    @pytest.mark.parametrize(
        "cents,expected",
        [(0, "$0.00"), (5, "$0.05"), (4999, "$49.99"), (123456, "$1,234.56")],
    )
    def test_format_amount(self, cents, expected):
        assert format_amount(cents) == expected

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            format_amount(-1)

    def test_whole_float_amount_accepted(self):
        assert format_amount(4999.0) == "$49.99"

    @pytest.mark.parametrize("amount", [49.5, "4999", True, None])
    def test_non_cent_amount_rejected(self, amount):
        with pytest.raises(ValidationError) as exc_info:
            format_amount(amount)
        assert "amount_cents" in exc_info.value.details["fields"]


class TestRendering:
    def test_account_created(self):
        rendered = render_account_created(Portal(), "Ada")
        assert rendered.subject == "Welcome to ALWR - Account Created"
        assert "Hello Ada," in rendered.body
        assert "https://alwr.example.com/login" in rendered.body
        assert rendered.kind is NotificationKind.ACCOUNT_CREATED

    def test_password_reset_link(self):
        rendered = render_password_reset(Portal(url="https://portal.test/"), "Ada", "tok123")
        assert rendered.subject == "ALWR - Password Reset Request"
        assert "https://portal.test/reset-password/tok123" in rendered.body
        assert "expires in 1 hour" in rendered.body

    def test_password_reset_requires_token(self):
        with pytest.raises(ValidationError):
            render_password_reset(Portal(), "Ada", "")

    def test_user_text_is_escaped(self):
        rendered = render_emergency_access_alert(
            Portal(), "<b>Ada</b>", "Dr. <script>", datetime(2026, 3, 5, 9, 0, tzinfo=timezone.utc),
        )
        assert "<script>" not in rendered.body
        assert "&lt;script&gt;" in rendered.body
        assert "&lt;b&gt;Ada&lt;/b&gt;" in rendered.body

    def test_custom_portal_branding(self):
        rendered = render_account_created(Portal(name="Acme"), "Ada")
        assert rendered.subject == "Welcome to Acme - Account Created"


class TestComposer:
    @pytest.mark.asyncio
    async def test_account_created(self, composer, store):
        msg = await composer.send_account_created("ada@example.com", "Ada", user_id="u-1")
        loaded = await store.get_by_id(msg.message_id)
        assert loaded.status is MessageStatus.PENDING
        assert loaded.kind is NotificationKind.ACCOUNT_CREATED
        assert loaded.user_id == "u-1"
        assert (loaded.resource_type, loaded.resource_id) == ("user", "u-1")

    @pytest.mark.asyncio
    async def test_password_reset(self, composer):
        msg = await composer.send_password_reset("ada@example.com", "Ada", "tok", user_id="u-1")
        assert msg.kind is NotificationKind.PASSWORD_RESET
        assert "/reset-password/tok" in msg.body

    @pytest.mark.asyncio
    async def test_renewal_reminder(self, composer):
        msg = await composer.send_renewal_reminder("ada@example.com", "Ada", date(2026, 4, 1))
        assert msg.subject == "ALWR - Subscription Renewal Reminder"
        assert "April 01, 2026" in msg.body
        assert msg.resource_type is None

    @pytest.mark.asyncio
    async def test_emergency_access_alert(self, composer):
        msg = await composer.send_emergency_access_alert(
            "ada@example.com", "Ada", "Dr. Smith",
            datetime(2026, 3, 5, 14, 30, tzinfo=timezone.utc), user_id="u-1",
        )
        assert msg.kind is NotificationKind.EMERGENCY_ACCESS_ALERT
        assert "Dr. Smith" in msg.body
        assert "March 05, 2026 at 14:30 UTC" in msg.body
        assert msg.resource_type == "emergency_access"

    @pytest.mark.asyncio
    async def test_document_uploaded(self, composer):
        msg = await composer.send_document_uploaded(
            "ada@example.com", "Ada", "Living Will.pdf", user_id="u-1", document_id="d-9",
        )
        assert msg.subject == "ALWR - Document Uploaded"
        assert (msg.resource_type, msg.resource_id) == ("document", "d-9")

    @pytest.mark.asyncio
    async def test_payment_confirmation(self, composer):
        msg = await composer.send_payment_confirmation("ada@example.com", "Ada", 4999, "inv_1")
        assert msg.kind is NotificationKind.PAYMENT_RECEIVED
        assert "$49.99" in msg.body
        assert (msg.resource_type, msg.resource_id) == ("invoice", "inv_1")

    @pytest.mark.asyncio
    async def test_subscription_expired(self, composer):
        msg = await composer.send_subscription_expired("ada@example.com", "Ada")
        assert msg.subject == "ALWR - Subscription Expired"

    @pytest.mark.asyncio
    async def test_custom_is_stored_verbatim(self, composer):
        msg = await composer.send_custom("ada@example.com", "Maintenance", "<p>Tonight</p>")
        assert msg.kind is NotificationKind.CUSTOM
        assert (msg.subject, msg.body) == ("Maintenance", "<p>Tonight</p>")

    @pytest.mark.asyncio
    async def test_invalid_recipient_stores_nothing(self, composer, store):
        with pytest.raises(ValidationError):
            await composer.send_account_created("not-an-address", "Ada")
        assert (await store.count_by_status())["pending"] == 0
