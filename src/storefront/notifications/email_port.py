"""Outbound mail for storefront notifications.

Adapters report each delivery attempt as a plain dict instead of raising,
so the caller decides whether an undelivered order confirmation matters.
"""

from abc import ABC, abstractmethod

SENT = "sent"
FAILED = "failed"


def sent_result(message_id: str) -> dict:
    return {"message_id": message_id, "status": SENT, "error": None}


def failed_result(error: str) -> dict:
    return {"message_id": None, "status": FAILED, "error": error or "Email delivery failed"}


def was_delivered(result) -> bool:
    """Anything but an explicit ``sent`` status counts as undelivered."""
    return bool(result) and result.get("status") == SENT


class EmailPort(ABC):
    """Delivers a single message to one customer address."""

    @abstractmethod
    def send(self, to: str, subject: str, body: str, html_body: str | None = None) -> dict:
        """Attempt delivery of one message to ``to``.

        Returns a dict with ``status`` (``"sent"`` or ``"failed"``),
        ``message_id`` (the adapter's id, ``None`` unless sent) and
        ``error`` (the failure reason, ``None`` unless failed). Build it
        with :func:`sent_result` or :func:`failed_result`.
        """
