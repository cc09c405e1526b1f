"""
Order and its line items.

Status flow: PENDING -> PAID (Stripe webhook) -> FULFILLED (admin).
PENDING and PAID orders may be CANCELLED; only PAID cancellations put stock back.
"""
from sqlalchemy import Column, String, Integer, ForeignKey, DateTime
from sqlalchemy.orm import relationship

from medportal.db.base import Base, new_id, utcnow


class OrderStatus:
    PENDING = "PENDING"
    PAID = "PAID"
    FULFILLED = "FULFILLED"
    CANCELLED = "CANCELLED"

    ALL = (PENDING, PAID, FULFILLED, CANCELLED)
    REVENUE = (PAID, FULFILLED)


class OrderType:
    PATIENT = "patient"  # dispensed to a patient, consumes stock
    STOCK = "stock"  # clinic restock, adds to stock

    ALL = (PATIENT, STOCK)


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    order_type = Column(String(16), nullable=False, default=OrderType.PATIENT)
    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="SET NULL"), nullable=True)
    patient_name = Column(String(255), nullable=False)
    patient_email = Column(String(255), nullable=False)
    patient_phone = Column(String(64), nullable=True)
    doctor_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    total_cents = Column(Integer, nullable=False)  # fixed at creation
    status = Column(String(16), nullable=False, default=OrderStatus.PENDING, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="order", cascade="all, delete-orphan")
    patient = relationship("Patient", backref="orders")
    doctor = relationship("User", backref="doctor_orders")
    pharmacy_log = relationship("PharmacyLog", back_populates="order", uselist=False, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Order id={self.id} status={self.status} total_cents={self.total_cents}>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
