"""Create all tables. Run on app startup.

Also provisions an ADMIN user for every address in ADMIN_EMAILS so a fresh
install can log in. Each gets a random password printed once to the console.
"""
import logging
import secrets

from medportal.db.base import Base
from medportal.db.session import engine, SessionLocal
from medportal.models import User, UserRole  # noqa: F401 - registers every model
from medportal.core.config import settings
from medportal.core.security import get_password_hash

logger = logging.getLogger(__name__)


def init_db():
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        for email in settings.ADMIN_EMAILS:
            if db.query(User).filter(User.email == email).first():
                continue
            password = secrets.token_urlsafe(16)
            db.add(User(email=email, role=UserRole.ADMIN, hashed_password=get_password_hash(password)))
            db.commit()

            print("\n" + "=" * 70)
            print("DEFAULT ADMIN USER CREATED")
            print("=" * 70)
            print(f"Email:    {email}")
            print(f"Password: {password}")
            print("\nChange this password immediately after first login!")
            print("=" * 70 + "\n")
            logger.info(f"Provisioned admin user {email}")
    finally:
        db.close()
