from sqlalchemy import Column, String, DateTime

from medportal.db.base import Base, new_id, utcnow


class UserRole:
    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
    PATIENT = "PATIENT"

    ALL = (ADMIN, DOCTOR, PATIENT)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=True)  # null for SSO-provisioned accounts
    name = Column(String(255), nullable=True)
    role = Column(String(16), nullable=False, default=UserRole.PATIENT)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
