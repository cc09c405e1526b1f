"""Orders: public creation, staff management, checkout links, fulfilment."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medportal.api.deps import get_db, get_current_user, require_admin
from medportal.models.user import User
from medportal.schemas.order import (
    CheckoutLinkResponse,
    MessageResponse,
    OrderCreate,
    OrderResponse,
    OrderUpdate,
    SendPaymentLinkRequest,
    SendPaymentLinkResponse,
)
from medportal.services import checkout_service, order_service

router = APIRouter()


@router.post("", response_model=OrderResponse, status_code=201)
def create_order(data: OrderCreate, db: Session = Depends(get_db)):
    """
    Place an order. Stock is checked and adjusted in the same transaction.

    400 if any item is out of stock; nothing is written in that case.
    """
    return order_service.create(db, data)


@router.get("", response_model=List[OrderResponse])
def list_orders(
    status: Optional[str] = Query(None, description="PENDING, PAID, FULFILLED or CANCELLED"),
    doctor_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return order_service.find_all(db, status=status, doctor_id=doctor_id)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return order_service.find_one(db, order_id)


@router.patch("/{order_id}", response_model=OrderResponse)
def update_order(
    order_id: str,
    data: OrderUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return order_service.update(db, order_id, data, actor=current_user.email)


@router.delete("/{order_id}", response_model=MessageResponse)
def cancel_order(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Cancel an order. Stock is restored only if the order was PAID."""
    return order_service.cancel(db, order_id, actor=current_user.email)


@router.post("/{order_id}/link", response_model=CheckoutLinkResponse)
def generate_checkout_link(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return checkout_service.generate_checkout_link(db, order_id)


@router.post("/{order_id}/send-payment-link", response_model=SendPaymentLinkResponse)
def send_payment_link(
    order_id: str,
    data: Optional[SendPaymentLinkRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data = data or SendPaymentLinkRequest()
    return order_service.send_payment_link(db, order_id, method=data.method, phone=data.phone)


@router.post("/{order_id}/fulfill", response_model=OrderResponse)
def fulfill_order(
    order_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return order_service.mark_as_fulfilled(db, order_id, actor=admin.email)
