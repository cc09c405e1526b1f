"""Declarative base shared by all models, plus id/timestamp defaults."""
import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC, the form SQLite round-trips."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
