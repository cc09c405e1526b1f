"""
SMS delivery through the Twilio REST API.

Without Twilio credentials (or without a sender) messages are simulated:
logged and reported as delivered, so local development and demos work
without an account.
"""
import logging
import re
import time
from typing import Optional

import requests

from medportal.core.config import settings

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"
REQUEST_TIMEOUT_SECONDS = 10


def format_phone_number(phone: str) -> str:
    """Normalise to E.164, assuming a US number when no country code is given."""
    cleaned = re.sub(r"\D", "", phone)

    if len(cleaned) == 10:
        return f"+1{cleaned}"
    if len(cleaned) == 11 and cleaned.startswith("1"):
        return f"+{cleaned}"
    if phone.strip().startswith("+"):
        return f"+{cleaned}"
    return f"+1{cleaned}"


def is_configured() -> bool:
    return bool(
        settings.TWILIO_ACCOUNT_SID
        and settings.TWILIO_AUTH_TOKEN
        and (settings.TWILIO_PHONE_NUMBER or settings.TWILIO_MESSAGING_SERVICE_SID)
    )


def send_sms(to: str, body: str) -> dict:
    """
    Send one SMS. Never raises.

    Returns:
        {"success": bool, "message_id": str | None, "error": str | None}
    """
    formatted_to = format_phone_number(to)

    if not is_configured():
        logger.info(f"[SIMULATED SMS - Twilio not configured] to={formatted_to} body={body!r}")
        return {"success": True, "message_id": f"simulated_{int(time.time() * 1000)}", "error": None}

    data = {"To": formatted_to, "Body": body}
    # A messaging service takes precedence over a single sender number
    if settings.TWILIO_MESSAGING_SERVICE_SID:
        data["MessagingServiceSid"] = settings.TWILIO_MESSAGING_SERVICE_SID
    else:
        data["From"] = settings.TWILIO_PHONE_NUMBER
    if settings.TWILIO_STATUS_WEBHOOK_URL:
        data["StatusCallback"] = settings.TWILIO_STATUS_WEBHOOK_URL

    try:
        resp = requests.post(
            TWILIO_MESSAGES_URL.format(sid=settings.TWILIO_ACCOUNT_SID),
            data=data,
            auth=(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN),
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        payload = _json_or_empty(resp)
        if resp.status_code >= 400:
            error = payload.get("message") or f"HTTP {resp.status_code}"
            logger.error(f"Twilio rejected SMS to {formatted_to}: {error} (code={payload.get('code')})")
            return {"success": False, "message_id": None, "error": error}
    except requests.RequestException as e:
        logger.error(f"Failed to send SMS via Twilio: {e}")
        return {"success": False, "message_id": None, "error": str(e)}

    logger.info(f"SMS sent to {formatted_to}: sid={payload.get('sid')} status={payload.get('status')}")
    return {"success": True, "message_id": payload.get("sid"), "error": None}


def _json_or_empty(resp: requests.Response) -> dict:
    try:
        return resp.json()
    except ValueError:
        return {}


def log_status_callback(form: dict) -> Optional[str]:
    """Record a Twilio delivery-status callback. Returns the message status."""
    status = form.get("MessageStatus")
    logger.info(
        f"Twilio SMS status: sid={form.get('MessageSid')} status={status} "
        f"to={form.get('To')} error_code={form.get('ErrorCode')}"
    )
    return status
