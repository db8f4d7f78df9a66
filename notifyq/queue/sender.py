"""Delivery senders: the pluggable transport behind the queue engine."""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import httpx

from notifyq.queue.errors import TransientDeliveryError

logger = logging.getLogger(__name__)

INVALID_RECIPIENT = "invalid_recipient"
_RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})
_REJECTED_STATUS_CODES = frozenset({400, 422})


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of a single send.

    ``error_code`` lets the engine tell permanent failures from
    retryable ones (see ``QueueSettings.permanent_error_codes``).
    """

    success: bool
    provider_message_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def ok(cls, provider_message_id: Optional[str] = None) -> "DeliveryOutcome":
        return cls(success=True, provider_message_id=provider_message_id)

    @classmethod
    def failed(cls, error: str, error_code: Optional[str] = None) -> "DeliveryOutcome":
        return cls(success=False, error=error, error_code=error_code)


class DeliverySender(Protocol):
    async def send(self, recipient: str, subject: str, body: str) -> DeliveryOutcome: ...


class LogSender:
    """Development sender: logs the message instead of delivering it."""

    def __init__(self, from_address: str = "noreply@alwr.com") -> None:
        self._from_address = from_address

    async def send(self, recipient: str, subject: str, body: str) -> DeliveryOutcome:
        provider_id = f"mock-{uuid.uuid4().hex[:12]}"
        logger.info(
            "Mock delivery from=%s subject=%r body_length=%d id=%s",
            self._from_address, subject, len(body), provider_id,
        )
        return DeliveryOutcome.ok(provider_id)


class WebhookSender:
    """Deliver through an HTTP email provider API.

    POSTs ``{"from", "to", "subject", "html"}`` as JSON. Network errors
    and 408/429/5xx responses raise :class:`TransientDeliveryError`;
    400/422 are reported as ``invalid_recipient``.
    """

    def __init__(
        self,
        url: str,
        api_key: str = "",
        from_address: str = "noreply@alwr.com",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not url:
            raise ValueError("url cannot be empty")
        self._url = url
        self._api_key = api_key
        self._from_address = from_address
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def send(self, recipient: str, subject: str, body: str) -> DeliveryOutcome:
        payload = {
            "from": self._from_address,
            "to": recipient,
            "subject": subject,
            "html": body,
        }
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout), transport=self._transport,
            ) as client:
                resp = await client.post(self._url, json=payload, headers=self._headers())
        except (httpx.TimeoutException, httpx.RequestError) as e:
            raise TransientDeliveryError(f"Provider request failed: {e}") from e

        if resp.is_success:
            return DeliveryOutcome.ok(_provider_id(resp))
        if resp.status_code in _RETRYABLE_STATUS_CODES:
            raise TransientDeliveryError(
                f"Provider returned {resp.status_code}", error_code=f"http_{resp.status_code}",
            )
        if resp.status_code in _REJECTED_STATUS_CODES:
            return DeliveryOutcome.failed(
                f"Provider rejected recipient: {resp.text[:200]}", INVALID_RECIPIENT,
            )
        return DeliveryOutcome.failed(
            f"Provider returned {resp.status_code}: {resp.text[:200]}",
            f"http_{resp.status_code}",
        )


def _provider_id(resp: httpx.Response) -> Optional[str]:
    try:
        data: Any = resp.json() if resp.content else None
    except ValueError:
        return None
    if isinstance(data, dict):
        value = data.get("id") or data.get("message_id")
        return str(value) if value else None
    return None
