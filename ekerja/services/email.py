"""Notification email via Resend API. Fire-and-forget: callers never depend on delivery."""

from __future__ import annotations

import logging

from ekerja.config import get_settings

logger = logging.getLogger(__name__)


def _send(to: str, subject: str, html: str) -> bool:
    """Send an email via Resend. Returns True on success."""
    settings = get_settings()
    if not settings.resend_api_key:
        logger.warning("RESEND_API_KEY not set, email to %s not sent: %s", to, subject)
        return False

    import resend
    resend.api_key = settings.resend_api_key

    try:
        resend.Emails.send({
            "from": settings.mail_from,
            "to": [to],
            "subject": subject,
            "html": html,
        })
        return True
    except Exception:
        logger.exception("Failed to send email to %s", to)
        return False


def send_order_status_email(email: str, order_id: int, status: str, note: str = "") -> bool:
    url = f"{get_settings().app_url}/orders/{order_id}"
    html = f"""
    <h2>Order #{order_id} is now {status.replace("_", " ").lower()}</h2>
    {f"<p>{note}</p>" if note else ""}
    <p><a href="{url}">View order</a></p>
    """
    return _send(email, f"Order #{order_id} status update", html)


def send_chat_access_request_email(email: str, conversation_id: int, reason: str) -> bool:
    url = f"{get_settings().app_url}/customer/chat-access"
    html = f"""
    <h2>An administrator asked to review a conversation</h2>
    <p>Conversation #{conversation_id}. Reason given: {reason}</p>
    <p>You decide whether to allow it, and for how long.</p>
    <p><a href="{url}">Review the request</a></p>
    """
    return _send(email, "Chat access request", html)
