"""Payments: Stripe PaymentIntents and the Stripe webhook.

The webhook route reads the raw body; the signature is computed over the
exact bytes Stripe sent, so the body must not be parsed first.
"""
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from medportal.api.deps import get_db, get_current_user
from medportal.models.user import User
from medportal.schemas.payment import CreatePaymentIntentRequest, PaymentIntentResponse, PaymentResponse
from medportal.services import payment_service
from medportal.services.stripe_gateway import StripeGateway, get_stripe_gateway

router = APIRouter()


@router.post("/create-intent", response_model=PaymentIntentResponse)
def create_payment_intent(
    data: CreatePaymentIntentRequest,
    db: Session = Depends(get_db),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    return payment_service.create_payment_intent(db, gateway, data.order_id)


@router.post("/webhooks/stripe")
async def stripe_webhook(
    request: Request,
    db: Session = Depends(get_db),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    raw_body = await request.body()
    signature = request.headers.get("stripe-signature")
    return await run_in_threadpool(payment_service.handle_webhook, db, gateway, raw_body, signature)


@router.get("/order/{order_id}", response_model=List[PaymentResponse])
def payments_for_order(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return payment_service.find_by_order(db, order_id)


@router.get("/{payment_id}", response_model=PaymentResponse)
def get_payment(
    payment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return payment_service.find_one(db, payment_id)
