"""
Stripe payments: PaymentIntent creation and webhook processing.

WEBHOOK GUARANTEES:
- The Stripe-Signature header is verified before anything is read.
- payment_intent.succeeded sets Payment SUCCEEDED and Order PAID in one
  transaction. A replayed event for an already-succeeded payment is ignored,
  so an order flips to PAID exactly once.
- Confirmation email and pharmacy submission run after the commit and are
  best-effort: failures are logged and never returned to Stripe.
"""
import logging
from typing import List, Optional

import stripe
from sqlalchemy.orm import Session, joinedload

from medportal.core.audit import AuditLog
from medportal.core.config import settings
from medportal.core.exceptions import BusinessError
from medportal.models.order import Order, OrderStatus
from medportal.models.payment import Payment, PaymentStatus
from medportal.services import notification_service, order_service, pharmacy_service
from medportal.services.stripe_gateway import StripeGateway

logger = logging.getLogger(__name__)

WEBHOOK_ACTOR = "stripe_webhook"

EVENT_SUCCEEDED = "payment_intent.succeeded"
EVENT_FAILED = "payment_intent.payment_failed"
EVENT_CANCELED = "payment_intent.canceled"


def create_payment_intent(db: Session, gateway: StripeGateway, order_id: str) -> dict:
    if not gateway.configured:
        raise BusinessError.bad_request("Stripe not configured")

    order = order_service.find_one(db, order_id)
    if order.status != OrderStatus.PENDING:
        raise BusinessError.bad_request("Order is not in pending status")

    try:
        intent = gateway.create_payment_intent(
            order.total_cents,
            settings.PAYMENT_CURRENCY,
            {
                "orderId": order.id,
                "patientEmail": order.patient_email,
                "patientName": order.patient_name,
            },
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe PaymentIntent creation failed for order {order.id}: {e}")
        raise BusinessError.bad_request("Failed to create payment intent")

    payment = Payment(
        order_id=order.id,
        stripe_payment_intent_id=intent["id"],
        amount_cents=order.total_cents,
        status=PaymentStatus.PENDING,
    )
    db.add(payment)
    db.commit()
    logger.info(f"PaymentIntent {intent['id']} created for order {order.id} ({order.total_cents} cents)")

    return {"client_secret": intent["client_secret"], "payment_intent_id": intent["id"]}


def handle_webhook(db: Session, gateway: StripeGateway, raw_body: bytes, signature: Optional[str]) -> dict:
    if not gateway.configured:
        raise BusinessError.bad_request("Stripe not configured")
    if not gateway.webhook_secret:
        raise BusinessError.bad_request("Webhook secret not configured")
    if not signature:
        raise BusinessError.bad_request("Missing stripe-signature header")

    try:
        event = gateway.construct_event(raw_body, signature)
    except (stripe.SignatureVerificationError, ValueError) as e:
        logger.warning(f"Webhook signature verification failed: {e}")
        raise BusinessError.bad_request("Invalid webhook signature")

    event_type = event.get("type")
    intent = (event.get("data") or {}).get("object") or {}
    intent_id = intent.get("id")
    logger.info(f"Stripe event {event.get('id')} type={event_type} intent={intent_id}")

    if event_type == EVENT_SUCCEEDED:
        order = _handle_payment_succeeded(db, intent_id)
        if order is not None:
            _after_payment_succeeded(db, order)
    elif event_type == EVENT_FAILED:
        _set_payment_status(db, intent_id, PaymentStatus.FAILED)
    elif event_type == EVENT_CANCELED:
        _set_payment_status(db, intent_id, PaymentStatus.CANCELLED)
    else:
        logger.info(f"Unhandled event type: {event_type}")

    return {"received": True}


def _find_by_intent(db: Session, intent_id: Optional[str]) -> Optional[Payment]:
    if not intent_id:
        return None
    return (
        db.query(Payment)
        .options(joinedload(Payment.order))
        .filter(Payment.stripe_payment_intent_id == intent_id)
        .first()
    )


def _handle_payment_succeeded(db: Session, intent_id: Optional[str]) -> Optional[Order]:
    """Returns the order when it was flipped to PAID by this event, else None."""
    payment = _find_by_intent(db, intent_id)
    if not payment:
        logger.error(f"Payment not found for PaymentIntent: {intent_id}")
        return None
    if payment.status == PaymentStatus.SUCCEEDED:
        logger.info(f"PaymentIntent {intent_id} already processed; ignoring replay")
        return None

    order = payment.order
    order_paid = False
    try:
        payment.status = PaymentStatus.SUCCEEDED
        if order.status == OrderStatus.PENDING:
            order_service.mark_as_paid(db, order)
            order_paid = True
        else:
            logger.warning(
                f"Payment {payment.id} succeeded but order {order.id} is {order.status}; order status unchanged"
            )
        db.commit()
    except Exception as e:
        db.rollback()
        raise BusinessError.server_error(e)

    logger.info(f"Payment succeeded for order: {order.id}")
    AuditLog.log_action(
        "status_change", "payment", payment.id, actor=WEBHOOK_ACTOR,
        changes={"status": PaymentStatus.SUCCEEDED, "order_id": order.id, "order_paid": order_paid},
    )
    return order if order_paid else None


def _after_payment_succeeded(db: Session, order: Order) -> None:
    order = order_service.find_one(db, order.id)
    notification_service.send_payment_confirmation(order)
    try:
        pharmacy_service.submit_order(db, order.id)
    except Exception as e:
        logger.error(f"Pharmacy submission for paid order {order.id} failed: {e}")


def _set_payment_status(db: Session, intent_id: Optional[str], status: str) -> None:
    payment = _find_by_intent(db, intent_id)
    if not payment:
        logger.warning(f"Payment not found for PaymentIntent: {intent_id} (status {status})")
        return
    if payment.status == PaymentStatus.SUCCEEDED:
        logger.warning(f"Ignoring {status} for already succeeded payment {payment.id}")
        return

    payment.status = status
    db.commit()
    logger.info(f"Payment {status.lower()} for order: {payment.order_id}")
    AuditLog.log_action(
        "status_change", "payment", payment.id, actor=WEBHOOK_ACTOR,
        changes={"status": status, "order_id": payment.order_id},
    )


def find_one(db: Session, payment_id: str) -> Payment:
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if not payment:
        raise BusinessError.not_found("Payment", payment_id)
    return payment


def find_by_order(db: Session, order_id: str) -> List[Payment]:
    return (
        db.query(Payment)
        .filter(Payment.order_id == order_id)
        .order_by(Payment.created_at.desc())
        .all()
    )
