"""Notification composer: renders each notification kind and enqueues it.

Rendering is pure (``render_*`` functions); the composer methods only add
the enqueue call. Retry and delivery concerns belong to the engine.
"""
from dataclasses import dataclass
from datetime import date, datetime, timezone
from html import escape
from typing import Optional, Union

from notifyq.queue.engine import QueueEngine
from notifyq.queue.errors import ValidationError
from notifyq.state.models.notification import NotificationKind, QueuedMessage

DEFAULT_PORTAL_NAME = "ALWR"
DEFAULT_PORTAL_URL = "https://alwr.example.com"
RESET_LINK_TTL_HOURS = 1


@dataclass(frozen=True)
class Portal:
    """Branding used in every rendered message."""

    name: str = DEFAULT_PORTAL_NAME
    url: str = DEFAULT_PORTAL_URL

    def link(self, path: str) -> str:
        return f"{self.url.rstrip('/')}/{path.lstrip('/')}"


@dataclass(frozen=True)
class RenderedNotification:
    subject: str
    body: str
    kind: NotificationKind


def format_date(value: date) -> str:
    return f"{value:%B} {value.day:02d}, {value.year}"


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return f"{format_date(value)} at {value:%H:%M} UTC"


def format_amount(amount_cents: Union[int, float]) -> str:
    """Format cents as dollars. Whole-number floats are accepted."""
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, (int, float)):
        raise ValidationError(
            "amount_cents must be a number", {"fields": {"amount_cents": "must be a number"}}
        )
    if isinstance(amount_cents, float):
        if not amount_cents.is_integer():
            raise ValidationError(
                "amount_cents must be a whole number of cents",
                {"fields": {"amount_cents": "must be a whole number of cents"}},
            )
        amount_cents = int(amount_cents)
    if amount_cents < 0:
        raise ValidationError("amount_cents cannot be negative", {"fields": {"amount_cents": "cannot be negative"}})
    return f"${amount_cents // 100:,}.{amount_cents % 100:02d}"


def _page(title: str, first_name: str, *paragraphs: str) -> str:
    lines = [f"<h2>{escape(title)}</h2>", f"<p>Hello {escape(first_name)},</p>"]
    lines.extend(paragraphs)
    return "\n".join(lines)


def _button(href: str, label: str) -> str:
    return f'<p><a href="{escape(href, quote=True)}">{escape(label)}</a></p>'


def render_account_created(portal: Portal, first_name: str) -> RenderedNotification:
    return RenderedNotification(
        subject=f"Welcome to {portal.name} - Account Created",
        body=_page(
            f"Welcome to {portal.name}",
            first_name,
            f"<p>Your {escape(portal.name)} account has been created.</p>",
            "<p>You can now log in and start managing your healthcare documents.</p>",
            _button(portal.link("/login"), "Log in to your account"),
            "<p>If you need any assistance, please contact our support team.</p>",
        ),
        kind=NotificationKind.ACCOUNT_CREATED,
    )


def render_password_reset(portal: Portal, first_name: str, reset_token: str) -> RenderedNotification:
    if not reset_token:
        raise ValidationError("reset_token cannot be empty", {"fields": {"reset_token": "cannot be empty"}})
    return RenderedNotification(
        subject=f"{portal.name} - Password Reset Request",
        body=_page(
            "Password Reset Request",
            first_name,
            "<p>We received a request to reset your password.</p>",
            _button(portal.link(f"/reset-password/{reset_token}"), "Reset your password"),
            f"<p>This link expires in {RESET_LINK_TTL_HOURS} hour.</p>",
            "<p>If you did not request this, you can ignore this email.</p>",
        ),
        kind=NotificationKind.PASSWORD_RESET,
    )


def render_renewal_reminder(portal: Portal, first_name: str, renewal_date: date) -> RenderedNotification:
    return RenderedNotification(
        subject=f"{portal.name} - Subscription Renewal Reminder",
        body=_page(
            "Subscription Renewal Reminder",
            first_name,
            f"<p>Your {escape(portal.name)} subscription will expire on "
            f"{format_date(renewal_date)}.</p>",
            "<p>Please renew your subscription to keep access to your documents.</p>",
            _button(portal.link("/account/renew"), "Renew subscription"),
        ),
        kind=NotificationKind.RENEWAL_REMINDER,
    )


def render_emergency_access_alert(
    portal: Portal, first_name: str, accessor_name: str, access_time: datetime,
) -> RenderedNotification:
    return RenderedNotification(
        subject=f"{portal.name} - Emergency Document Access Alert",
        body=_page(
            "Emergency Document Access Alert",
            first_name,
            f"<p>Your emergency documents were accessed by {escape(accessor_name)} "
            f"on {format_timestamp(access_time)}.</p>",
            _button(portal.link("/account/access-log"), "View access log"),
            "<p>If this access was not authorized, please contact us immediately.</p>",
        ),
        kind=NotificationKind.EMERGENCY_ACCESS_ALERT,
    )


def render_document_uploaded(portal: Portal, first_name: str, document_name: str) -> RenderedNotification:
    return RenderedNotification(
        subject=f"{portal.name} - Document Uploaded",
        body=_page(
            "Document Uploaded Successfully",
            first_name,
            f"<p>Your document &quot;{escape(document_name)}&quot; has been uploaded "
            "and stored securely.</p>",
            _button(portal.link("/documents"), "View your documents"),
        ),
        kind=NotificationKind.DOCUMENT_UPLOADED,
    )


def render_payment_confirmation(
    portal: Portal, first_name: str, amount_cents: int, invoice_id: str,
) -> RenderedNotification:
    return RenderedNotification(
        subject=f"{portal.name} - Payment Received",
        body=_page(
            "Payment Received",
            first_name,
            f"<p>We have received your payment of {format_amount(amount_cents)}.</p>",
            f"<p>Invoice ID: {escape(invoice_id)}</p>",
            _button(portal.link("/account/billing"), "View receipt"),
            "<p>Thank you!</p>",
        ),
        kind=NotificationKind.PAYMENT_RECEIVED,
    )


def render_subscription_expired(portal: Portal, first_name: str) -> RenderedNotification:
    return RenderedNotification(
        subject=f"{portal.name} - Subscription Expired",
        body=_page(
            "Subscription Expired",
            first_name,
            f"<p>Your {escape(portal.name)} subscription has expired.</p>",
            "<p>Renew your subscription to continue accessing your documents.</p>",
            _button(portal.link("/account/renew"), "Renew now"),
        ),
        kind=NotificationKind.SUBSCRIPTION_EXPIRED,
    )


class NotificationComposer:
    """Builds notification payloads and hands them to the queue engine."""

    def __init__(self, engine: QueueEngine, portal: Optional[Portal] = None) -> None:
        self._engine = engine
        self._portal = portal or Portal()

    @property
    def portal(self) -> Portal:
        return self._portal

    async def _enqueue(
        self,
        recipient: str,
        rendered: RenderedNotification,
        user_id: Optional[str],
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
    ) -> QueuedMessage:
        return await self._engine.enqueue(
            recipient,
            rendered.subject,
            rendered.body,
            rendered.kind,
            user_id=user_id,
            resource_type=resource_type if resource_id else None,
            resource_id=resource_id,
        )

    async def send_account_created(
        self, recipient: str, first_name: str, user_id: Optional[str] = None,
    ) -> QueuedMessage:
        rendered = render_account_created(self._portal, first_name)
        return await self._enqueue(recipient, rendered, user_id, "user", user_id)

    async def send_password_reset(
        self, recipient: str, first_name: str, reset_token: str, user_id: Optional[str] = None,
    ) -> QueuedMessage:
        rendered = render_password_reset(self._portal, first_name, reset_token)
        return await self._enqueue(recipient, rendered, user_id, "user", user_id)

    async def send_renewal_reminder(
        self, recipient: str, first_name: str, renewal_date: date, user_id: Optional[str] = None,
    ) -> QueuedMessage:
        rendered = render_renewal_reminder(self._portal, first_name, renewal_date)
        return await self._enqueue(recipient, rendered, user_id, "subscription", user_id)

    async def send_emergency_access_alert(
        self,
        recipient: str,
        first_name: str,
        accessor_name: str,
        access_time: datetime,
        user_id: Optional[str] = None,
    ) -> QueuedMessage:
        rendered = render_emergency_access_alert(
            self._portal, first_name, accessor_name, access_time,
        )
        return await self._enqueue(recipient, rendered, user_id, "emergency_access", user_id)

    async def send_document_uploaded(
        self,
        recipient: str,
        first_name: str,
        document_name: str,
        user_id: Optional[str] = None,
        document_id: Optional[str] = None,
    ) -> QueuedMessage:
        rendered = render_document_uploaded(self._portal, first_name, document_name)
        return await self._enqueue(recipient, rendered, user_id, "document", document_id)

    async def send_payment_confirmation(
        self,
        recipient: str,
        first_name: str,
        amount_cents: int,
        invoice_id: str,
        user_id: Optional[str] = None,
    ) -> QueuedMessage:
        rendered = render_payment_confirmation(self._portal, first_name, amount_cents, invoice_id)
        return await self._enqueue(recipient, rendered, user_id, "invoice", invoice_id)

    async def send_subscription_expired(
        self, recipient: str, first_name: str, user_id: Optional[str] = None,
    ) -> QueuedMessage:
        rendered = render_subscription_expired(self._portal, first_name)
        return await self._enqueue(recipient, rendered, user_id, "subscription", user_id)

    async def send_custom(
        self, recipient: str, subject: str, body: str, user_id: Optional[str] = None,
    ) -> QueuedMessage:
        """Queue an admin-written message as-is (kind ``custom``)."""
        rendered = RenderedNotification(subject=subject, body=body, kind=NotificationKind.CUSTOM)
        return await self._enqueue(recipient, rendered, user_id)
