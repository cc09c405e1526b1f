from datetime import datetime

from pydantic import BaseModel


class CreatePaymentIntentRequest(BaseModel):
    order_id: str


class PaymentIntentResponse(BaseModel):
    client_secret: str
    payment_intent_id: str


class PaymentResponse(BaseModel):
    id: str
    order_id: str
    stripe_payment_intent_id: str
    status: str
    amount_cents: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
