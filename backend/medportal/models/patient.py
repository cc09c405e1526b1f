from sqlalchemy import Column, String, DateTime

from medportal.db.base import Base, new_id, utcnow


class Patient(Base):
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
