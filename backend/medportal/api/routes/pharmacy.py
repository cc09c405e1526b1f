"""Pharmacy: manual (re)submission of an order and its submission log. Admin only."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from medportal.api.deps import get_db, require_admin
from medportal.core.audit import AuditLog
from medportal.models.user import User
from medportal.services import pharmacy_service

router = APIRouter()


@router.post("/orders/{order_id}/submit")
def submit_order(order_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    response = pharmacy_service.submit_order(db, order_id)
    AuditLog.log_action(
        "submit", "pharmacy_order", order_id, actor=admin.email,
        changes={"pharmacy_order_id": response["pharmacyOrderId"]},
    )
    return response


@router.get("/orders/{order_id}/log")
def submission_log(order_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    log = pharmacy_service.get_log(db, order_id)
    return {
        "id": log.id,
        "order_id": log.order_id,
        "status": log.status,
        "request_payload": log.request_payload,
        "response_payload": log.response_payload,
        "timestamp": log.timestamp,
    }
