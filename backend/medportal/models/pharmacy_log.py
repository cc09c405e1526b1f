from sqlalchemy import Column, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.types import JSON

from medportal.db.base import Base, new_id, utcnow


class PharmacyLogStatus:
    SENT = "SENT"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class PharmacyLog(Base):
    """FHIR request sent to the partner pharmacy for an order, and its response."""
    __tablename__ = "pharmacy_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), unique=True, nullable=False)
    request_payload = Column(JSON, nullable=False)
    response_payload = Column(JSON, nullable=True)
    status = Column(String(16), nullable=False, default=PharmacyLogStatus.SENT)
    timestamp = Column(DateTime, default=utcnow, nullable=False)

    order = relationship("Order", back_populates="pharmacy_log")
