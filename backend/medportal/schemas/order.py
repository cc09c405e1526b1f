from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from medportal.schemas.payment import PaymentResponse


def _strip_name(v: str) -> str:
    if not v.strip():
        raise ValueError("Patient name must not be blank")
    return v.strip()


class OrderItemCreate(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)


class OrderCreate(BaseModel):
    order_type: Literal["patient", "stock"] = "patient"
    patient_id: Optional[str] = None
    patient_name: str = Field(..., min_length=1, max_length=255)
    patient_email: EmailStr
    patient_phone: Optional[str] = None
    doctor_id: Optional[str] = None
    items: List[OrderItemCreate]

    @field_validator("patient_name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _strip_name(v)


class OrderUpdate(BaseModel):
    patient_name: Optional[str] = Field(None, min_length=1, max_length=255)
    patient_email: Optional[EmailStr] = None
    doctor_id: Optional[str] = None
    status: Optional[Literal["PENDING", "PAID", "FULFILLED", "CANCELLED"]] = None

    @field_validator("patient_name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _strip_name(v)


class ProductSummary(BaseModel):
    id: str
    name: str
    sku: str
    price_cents: int

    class Config:
        from_attributes = True


class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    quantity: int
    product: Optional[ProductSummary] = None

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: str
    order_type: str
    patient_id: Optional[str] = None
    patient_name: str
    patient_email: str
    patient_phone: Optional[str] = None
    doctor_id: Optional[str] = None
    total_cents: int
    status: str
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemResponse] = []
    payments: List[PaymentResponse] = []

    class Config:
        from_attributes = True


class CheckoutLinkResponse(BaseModel):
    checkout_url: str
    token: str
    expires_at: datetime


class SendPaymentLinkRequest(BaseModel):
    method: Literal["email", "sms", "text"] = "email"
    phone: Optional[str] = None


class SendPaymentLinkResponse(BaseModel):
    sent: bool
    method: str
    checkout_url: str
    expires_at: datetime


class CheckoutVerifyRequest(BaseModel):
    token: str


class CheckoutVerifyResponse(BaseModel):
    valid: bool
    order_id: str
    expires_at: datetime


class MessageResponse(BaseModel):
    message: str
