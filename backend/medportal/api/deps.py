"""FastAPI dependencies: DB session, current user from JWT, admin guard.

SECURITY: Supports JWT from:
1. Authorization header (for API clients)
2. httpOnly cookie (for web frontend)
"""
from typing import Generator, Optional

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from medportal.db.session import SessionLocal
from medportal.core.audit import AuditLog
from medportal.core.security import decode_access_token
from medportal.models.user import User

AUTH_COOKIE_NAME = "medportal_token"

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    Extract user ID from JWT token.
    Header takes precedence over cookie. Checkout tokens are rejected here.
    """
    token = None

    if credentials:
        token = credentials.credentials
    elif AUTH_COOKIE_NAME in request.cookies:
        token = request.cookies[AUTH_COOKIE_NAME]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    sub = decode_access_token(token)
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return sub


def get_current_user(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> User:
    """Load current user from DB."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def require_admin(request: Request, current_user: User = Depends(get_current_user)) -> User:
    """Only ADMIN users pass. Denials are audit logged."""
    if not current_user.is_admin:
        AuditLog.log_access_denied(
            request.method.lower(), request.url.path, current_user.id, "Admin role required"
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user
