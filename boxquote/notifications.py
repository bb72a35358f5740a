"""
Notification collaborator: posts structured lead / quote events to a webhook.

Fire-and-forget: the sales team's inbox is downstream of this, never the
quoting flow. Nothing here raises.
"""

import http.client
import json
import logging
import urllib.error
import urllib.request

from .config import settings

logger = logging.getLogger(__name__)

LEAD_WITH_CONTACT = "lead_with_contact"
HIGH_VALUE_QUOTE = "high_value_quote"
BELOW_MINIMUM_ACCEPTED = "below_minimum_accepted"


def build_payload(event_type: str, public_quote) -> dict:
    return {
        "type": event_type,
        "origin": public_quote.source or "web",
        "box": {
            "length_mm": public_quote.length_mm,
            "width_mm": public_quote.width_mm,
            "height_mm": public_quote.height_mm,
            "has_printing": bool(public_quote.has_printing),
        },
        "quantity": public_quote.quantity,
        "total": public_quote.subtotal,
        "contact": {
            "name": public_quote.requester_name,
            "company": public_quote.requester_company,
            "email": public_quote.requester_email,
            "phone": public_quote.requester_phone,
        },
        "public_quote_id": public_quote.id,
    }


def send_notification(payload: dict) -> bool:
    """POST one payload. Returns True when the webhook accepted it."""
    url = settings.NOTIFICATION_WEBHOOK_URL
    if not url:
        logger.info("No notification webhook configured, dropping %s event", payload.get("type"))
        return False

    req = urllib.request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    try:
        with urllib.request.urlopen(req, timeout=settings.NOTIFICATION_TIMEOUT_SECONDS) as response:
            return 200 <= response.status < 300
    except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
        logger.warning("Notification %s failed: %s", payload.get("type"), e)
        return False


def notify_public_quote(public_quote, event_type: str = LEAD_WITH_CONTACT) -> list:
    """
    Send the event for a web quote, plus a high_value_quote event when the
    subtotal reaches HIGH_VALUE_QUOTE_THRESHOLD. Returns the event types sent.
    """
    events = [event_type]
    if (public_quote.subtotal or 0) >= settings.HIGH_VALUE_QUOTE_THRESHOLD:
        events.append(HIGH_VALUE_QUOTE)

    for event in events:
        try:
            send_notification(build_payload(event, public_quote))
        except Exception:
            logger.exception("Notification %s for public quote %s failed", event, public_quote.id)
    return events
