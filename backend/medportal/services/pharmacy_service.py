"""
Partner-pharmacy submission (simulated) and low-stock scanning.

submit_order keeps exactly one PharmacyLog per order: SENT when the FHIR
request is built, then SUCCESS with the pharmacy response, or ERROR.
"""
import logging
import time
from datetime import timedelta
from typing import List

from sqlalchemy.orm import Session, selectinload

from medportal.core.exceptions import BusinessError
from medportal.db.base import utcnow
from medportal.models.order import Order, OrderItem
from medportal.models.pharmacy_log import PharmacyLog, PharmacyLogStatus
from medportal.models.product import Product
from medportal.services import fhir_service, notification_service, product_service

logger = logging.getLogger(__name__)

FULFILLMENT_ESTIMATE = timedelta(hours=24)


def _load_order(db: Session, order_id: str) -> Order:
    order = (
        db.query(Order)
        .options(selectinload(Order.items).selectinload(OrderItem.product))
        .filter(Order.id == order_id)
        .first()
    )
    if not order:
        raise BusinessError.not_found("Order", order_id)
    return order


def _upsert_log(db: Session, order_id: str, **fields) -> PharmacyLog:
    log = db.query(PharmacyLog).filter(PharmacyLog.order_id == order_id).first()
    if log is None:
        log = PharmacyLog(order_id=order_id, **fields)
        db.add(log)
    else:
        for key, value in fields.items():
            setattr(log, key, value)
        log.timestamp = utcnow()
    return log


def _send_to_pharmacy(medication_request: dict) -> dict:
    """Stand-in for the partner pharmacy API."""
    return {
        "status": "accepted",
        "pharmacyOrderId": f"PH-{int(time.time() * 1000)}",
        "estimatedFulfillment": (utcnow() + FULFILLMENT_ESTIMATE).isoformat() + "Z",
    }


def submit_order(db: Session, order_id: str) -> dict:
    order = _load_order(db, order_id)

    try:
        medication_request = fhir_service.create_medication_request(order)
        if not fhir_service.validate_resource(medication_request):
            raise ValueError("Generated MedicationRequest failed validation")

        _upsert_log(
            db, order_id,
            request_payload=medication_request,
            response_payload=None,
            status=PharmacyLogStatus.SENT,
        )
        db.commit()
        logger.info(f"FHIR MedicationRequest created for order {order_id}")

        response = _send_to_pharmacy(medication_request)

        _upsert_log(db, order_id, response_payload=response, status=PharmacyLogStatus.SUCCESS)
        db.commit()
    except Exception as e:
        db.rollback()
        _upsert_log(
            db, order_id,
            request_payload={"error": "Failed to create request"},
            response_payload={"error": str(e)},
            status=PharmacyLogStatus.ERROR,
        )
        db.commit()
        logger.error(f"Pharmacy submission failed for order {order_id}: {e}")
        raise

    logger.info(f"Order {order_id} accepted by pharmacy as {response['pharmacyOrderId']}")
    return response


def get_log(db: Session, order_id: str) -> PharmacyLog:
    log = db.query(PharmacyLog).filter(PharmacyLog.order_id == order_id).first()
    if not log:
        raise BusinessError.not_found("Pharmacy log for order", order_id)
    return log


def check_low_stock_and_alert(db: Session) -> List[Product]:
    """Find products under par level and alert staff. Returns the low-stock products."""
    logger.info("Checking for low stock items...")
    low_stock = product_service.get_low_stock(db)

    if low_stock:
        logger.warning(
            f"Found {len(low_stock)} low stock items: "
            + ", ".join(f"{p.name} ({p.quantity}/{p.par_level})" for p in low_stock)
        )
        notification_service.send_low_stock_alert(low_stock)
    else:
        logger.info("All items are adequately stocked")
    return low_stock
