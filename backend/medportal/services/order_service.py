"""
Order lifecycle: create, list, update, cancel, fulfil.

STOCK RULES:
- Patient orders are checked against current stock and consume it at creation.
- Stock (restock) orders skip the check and add to stock at creation.
- Cancelling a PAID order reverses that adjustment. Cancelling a PENDING
  order leaves stock as it is.

The order row, its items and every stock adjustment are written in one
commit. Products are loaded FOR UPDATE so that concurrent orders for the
same item serialise on databases that support row locks.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from medportal.core.audit import AuditLog
from medportal.core.exceptions import BusinessError
from medportal.models.order import Order, OrderItem, OrderStatus, OrderType
from medportal.models.product import Product
from medportal.models.user import User
from medportal.schemas.order import OrderCreate, OrderUpdate
from medportal.services import checkout_service, notification_service, patient_service, product_service

logger = logging.getLogger(__name__)


def _order_query(db: Session):
    return db.query(Order).options(
        selectinload(Order.items).selectinload(OrderItem.product),
        selectinload(Order.payments),
        selectinload(Order.doctor),
    )


def _stock_delta(order_type: str, quantity: int) -> int:
    """Signed stock change applied when an order of this type is created."""
    return quantity if order_type == OrderType.STOCK else -quantity


def create(db: Session, data: OrderCreate, actor: Optional[str] = None) -> Order:
    """Validate stock, compute the total, persist order + items, adjust stock.

    Raises:
        HTTPException 400: empty order or insufficient stock (nothing is written)
        HTTPException 404: unknown product, patient or doctor
    """
    if not data.items:
        raise BusinessError.bad_request("Order must contain at least one item")

    order_type = data.order_type or OrderType.PATIENT
    check_stock = order_type != OrderType.STOCK

    products: Dict[str, Product] = {}
    requested: Dict[str, int] = {}
    total_cents = 0

    for item in data.items:
        product = products.get(item.product_id)
        if product is None:
            product = product_service.find_one(db, item.product_id, for_update=True)
            products[item.product_id] = product
        requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

        if check_stock and product.quantity < requested[item.product_id]:
            raise BusinessError.bad_request(
                f"Insufficient stock for {product.name}. "
                f"Available: {product.quantity}, Requested: {requested[item.product_id]}"
            )

        total_cents += product.price_cents * item.quantity

    if data.doctor_id and not db.query(User).filter(User.id == data.doctor_id).first():
        raise BusinessError.not_found("Doctor", data.doctor_id)

    if data.patient_id:
        patient = patient_service.find_one(db, data.patient_id)
    else:
        patient = patient_service.get_or_create(db, data.patient_name, data.patient_email, data.patient_phone)

    order = Order(
        order_type=order_type,
        patient_id=patient.id,
        patient_name=data.patient_name,
        patient_email=str(data.patient_email),
        patient_phone=data.patient_phone,
        doctor_id=data.doctor_id,
        total_cents=total_cents,
        status=OrderStatus.PENDING,
        items=[OrderItem(product_id=i.product_id, quantity=i.quantity) for i in data.items],
    )
    db.add(order)
    db.flush()

    for product_id, quantity in requested.items():
        product_service.adjust_quantity(db, products[product_id], _stock_delta(order_type, quantity))

    db.commit()
    logger.info(
        f"Order {order.id} created: type={order_type}, items={len(data.items)}, total_cents={total_cents}"
    )
    AuditLog.log_action(
        "create", "order", order.id, actor=actor,
        changes={"order_type": order_type, "total_cents": total_cents, "items": requested},
    )
    return find_one(db, order.id)


def find_all(db: Session, status: Optional[str] = None, doctor_id: Optional[str] = None) -> List[Order]:
    q = _order_query(db)
    if status:
        if status not in OrderStatus.ALL:
            raise BusinessError.bad_request(f"Unknown order status: {status}")
        q = q.filter(Order.status == status)
    if doctor_id:
        q = q.filter(Order.doctor_id == doctor_id)
    return q.order_by(Order.created_at.desc()).all()


def find_one(db: Session, order_id: str) -> Order:
    order = _order_query(db).filter(Order.id == order_id).first()
    if not order:
        raise BusinessError.not_found("Order", order_id)
    return order


def _check_transition(order: Order, new_status: str):
    if new_status == OrderStatus.CANCELLED:
        if order.status == OrderStatus.FULFILLED:
            raise BusinessError.bad_request("Cannot cancel fulfilled order")
    elif new_status == OrderStatus.FULFILLED:
        if order.status != OrderStatus.PAID:
            raise BusinessError.bad_request(f"Only paid orders can be fulfilled (order is {order.status})")
    elif new_status == OrderStatus.PAID:
        if order.status != OrderStatus.PENDING:
            raise BusinessError.bad_request(f"Cannot mark {order.status} order as paid")
    else:
        raise BusinessError.bad_request(f"Cannot move {order.status} order back to {new_status}")


def update(db: Session, order_id: str, data: OrderUpdate, actor: Optional[str] = None) -> Order:
    """Edit patient/doctor details and optionally move the order along its lifecycle.

    The status transition is validated before anything is written, so a
    rejected transition leaves the detail edits unsaved too.
    """
    order = find_one(db, order_id)
    changes = data.model_dump(exclude_unset=True)
    new_status = changes.pop("status", None)
    if new_status == order.status:
        new_status = None

    if "doctor_id" in changes and changes["doctor_id"]:
        if not db.query(User).filter(User.id == changes["doctor_id"]).first():
            raise BusinessError.not_found("Doctor", changes["doctor_id"])
    if new_status:
        _check_transition(order, new_status)

    for field, value in changes.items():
        if value is None and field != "doctor_id":
            continue
        setattr(order, field, str(value) if field == "patient_email" else value)

    # The lifecycle helpers commit the detail edits along with the status
    if new_status == OrderStatus.CANCELLED:
        cancel(db, order.id, actor=actor)
    elif new_status == OrderStatus.FULFILLED:
        mark_as_fulfilled(db, order.id, actor=actor)
    elif new_status == OrderStatus.PAID:
        mark_as_paid(db, order)
        db.commit()
    elif changes:
        db.commit()

    if changes:
        AuditLog.log_action("update", "order", order.id, actor=actor, changes=changes)

    db.expire_all()
    return find_one(db, order_id)


def cancel(db: Session, order_id: str, actor: Optional[str] = None) -> dict:
    order = find_one(db, order_id)

    if order.status == OrderStatus.CANCELLED:
        raise BusinessError.bad_request("Order is already cancelled")
    if order.status == OrderStatus.FULFILLED:
        raise BusinessError.bad_request("Cannot cancel fulfilled order")

    restored = {}
    # Stock is only put back for paid orders
    if order.status == OrderStatus.PAID:
        for item in order.items:
            product = product_service.find_one(db, item.product_id, for_update=True)
            product_service.adjust_quantity(db, product, -_stock_delta(order.order_type, item.quantity))
            restored[item.product_id] = restored.get(item.product_id, 0) + item.quantity

    previous_status = order.status
    order.status = OrderStatus.CANCELLED
    db.commit()

    logger.info(f"Order {order.id} cancelled (was {previous_status}); restored={restored or 'none'}")
    AuditLog.log_action(
        "cancel", "order", order.id, actor=actor,
        changes={"previous_status": previous_status, "restored": restored},
    )
    return {"message": "Order cancelled successfully"}


def mark_as_paid(db: Session, order: Order) -> Order:
    """Flip to PAID inside the caller's transaction (the payment webhook)."""
    order.status = OrderStatus.PAID
    db.flush()
    return order


def mark_as_fulfilled(db: Session, order_id: str, actor: Optional[str] = None) -> Order:
    order = find_one(db, order_id)
    if order.status != OrderStatus.PAID:
        raise BusinessError.bad_request(f"Only paid orders can be fulfilled (order is {order.status})")
    order.status = OrderStatus.FULFILLED
    db.commit()
    AuditLog.log_action("fulfill", "order", order.id, actor=actor)
    return find_one(db, order_id)


def send_payment_link(
    db: Session,
    order_id: str,
    method: str = "email",
    phone: Optional[str] = None,
) -> dict:
    """Issue a checkout link and deliver it by email or SMS ("text" is an alias for SMS)."""
    order = find_one(db, order_id)
    link = checkout_service.generate_checkout_link(db, order.id)

    channel = "sms" if method in ("sms", "text") else "email"
    if channel == "sms":
        phone = phone or order.patient_phone
        if not phone:
            raise BusinessError.bad_request("Phone number is required to send the payment link by SMS")

    sent = notification_service.send_payment_link(
        order, link["checkout_url"], method=channel, phone=phone
    )
    logger.info(f"Payment link for order {order.id} via {channel}: sent={sent}")
    return {
        "sent": sent,
        "method": channel,
        "checkout_url": link["checkout_url"],
        "expires_at": link["expires_at"],
    }
