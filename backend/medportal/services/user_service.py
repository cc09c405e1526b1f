"""User administration (admin only). Registration and login live in the auth routes."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from medportal.core.audit import AuditLog
from medportal.core.exceptions import BusinessError
from medportal.models.user import User
from medportal.schemas.user import UserUpdate

logger = logging.getLogger(__name__)


def find_all(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at.desc()).all()


def find_one(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise BusinessError.not_found("User", user_id)
    return user


def update(db: Session, user_id: str, data: UserUpdate, actor: Optional[User] = None) -> User:
    user = find_one(db, user_id)
    changes = data.model_dump(exclude_unset=True)

    if "name" in changes:
        user.name = changes["name"]
    if changes.get("role") and changes["role"] != user.role:
        user.role = changes["role"]
        AuditLog.log_permission_change(user.id, actor.email if actor else "system", user.role)

    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} updated: {sorted(changes)}")
    return user


def remove(db: Session, user_id: str, actor: Optional[User] = None) -> dict:
    user = find_one(db, user_id)
    if actor is not None and actor.id == user.id:
        raise BusinessError.bad_request("Administrators cannot delete their own account")
    db.delete(user)
    db.commit()
    AuditLog.log_action("delete", "user", user_id, actor=actor.email if actor else None)
    return {"message": "User deleted successfully"}
