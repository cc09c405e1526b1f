from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sku: str = Field(..., min_length=1, max_length=64)
    price_cents: int = Field(..., gt=0)
    cost_cents: Optional[int] = Field(None, ge=0)
    quantity: int = Field(0, ge=0)
    expiration_date: Optional[date] = None
    par_level: int = Field(10, ge=0)

    @field_validator("name", "sku")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    sku: Optional[str] = Field(None, min_length=1, max_length=64)
    price_cents: Optional[int] = Field(None, gt=0)
    cost_cents: Optional[int] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    expiration_date: Optional[date] = None
    par_level: Optional[int] = Field(None, ge=0)


class ProductResponse(BaseModel):
    id: str
    name: str
    sku: str
    price_cents: int
    cost_cents: int
    quantity: int
    expiration_date: Optional[date] = None
    par_level: int
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
