"""Notification provider callbacks."""
from urllib.parse import parse_qsl

from fastapi import APIRouter, Request

from medportal.services import sms_service

router = APIRouter()


@router.post("/webhooks/twilio-sms-status")
async def twilio_sms_status(request: Request):
    """Twilio posts application/x-www-form-urlencoded delivery updates here."""
    body = (await request.body()).decode("utf-8", errors="replace")
    status = sms_service.log_status_callback(dict(parse_qsl(body)))
    return {"received": True, "status": status}
