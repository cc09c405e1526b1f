"""
Checkout tokens: short-lived signed links that let a patient pay one order.

A token carries only the order id and a "checkout" type marker. It is valid
while its signature and expiry hold AND the order is still PENDING, so a
link stops working as soon as the order is paid or cancelled.
"""
import logging
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

import jwt
from sqlalchemy.orm import Session

from medportal.core.config import settings
from medportal.core.exceptions import BusinessError
from medportal.core.security import CHECKOUT_TOKEN_TYPE, decode_token, encode_token
from medportal.models.order import Order, OrderStatus

logger = logging.getLogger(__name__)

INVALID_TOKEN_DETAIL = "Invalid or expired token"


def create_checkout_token(order_id: str, expires_delta: timedelta | None = None) -> tuple[str, datetime]:
    if expires_delta is None:
        expires_delta = timedelta(hours=settings.CHECKOUT_TOKEN_EXPIRE_HOURS)
    token = encode_token({"orderId": order_id, "type": CHECKOUT_TOKEN_TYPE}, expires_delta)
    # JWT exp has one-second resolution
    expires_at = (datetime.now(timezone.utc) + expires_delta).replace(microsecond=0)
    return token, expires_at


def build_checkout_url(token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/checkout?{urlencode({'token': token})}"


def generate_checkout_link(db: Session, order_id: str) -> dict:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise BusinessError.not_found("Order", order_id)
    if order.status != OrderStatus.PENDING:
        raise BusinessError.bad_request("Order is not in pending status")

    token, expires_at = create_checkout_token(order.id)
    logger.info(f"Checkout link issued for order {order.id}, expires {expires_at.isoformat()}")
    return {
        "checkout_url": build_checkout_url(token),
        "token": token,
        "expires_at": expires_at,
    }


def verify_checkout_token(db: Session, token: str) -> dict:
    """
    Check signature, expiry, token type and that the order is still payable.

    Every failure is the same 401 so the response does not reveal whether
    the order exists.
    """
    try:
        payload = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise BusinessError.unauthorized("Checkout token expired", detail=INVALID_TOKEN_DETAIL)
    except jwt.PyJWTError as e:
        raise BusinessError.unauthorized(f"Checkout token rejected: {e}", detail=INVALID_TOKEN_DETAIL)

    if payload.get("type") != CHECKOUT_TOKEN_TYPE:
        raise BusinessError.unauthorized("Wrong token type for checkout", detail=INVALID_TOKEN_DETAIL)

    order_id = payload.get("orderId")
    order = db.query(Order).filter(Order.id == order_id).first() if order_id else None
    if not order:
        raise BusinessError.unauthorized(f"Checkout token for unknown order {order_id}", detail=INVALID_TOKEN_DETAIL)
    if order.status != OrderStatus.PENDING:
        raise BusinessError.unauthorized(
            f"Checkout token for order {order_id} in status {order.status}", detail=INVALID_TOKEN_DETAIL
        )

    return {
        "valid": True,
        "order_id": order.id,
        "expires_at": datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    }
