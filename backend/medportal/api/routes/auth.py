"""Auth: register, login, current user, checkout-token verification.

SECURITY FEATURES:
- Password hashing with bcrypt
- Self-registration can never grant ADMIN; admins come from ADMIN_EMAILS
  or an existing admin changing a role
- Generic login error to prevent user enumeration
- Token in the response body and in an httpOnly cookie
"""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from medportal.api.deps import AUTH_COOKIE_NAME, get_db, get_current_user
from medportal.core.audit import AuditLog
from medportal.core.config import settings
from medportal.core.exceptions import BusinessError
from medportal.core.security import verify_password, get_password_hash, create_access_token
from medportal.models.user import User, UserRole
from medportal.schemas.order import CheckoutVerifyRequest, CheckoutVerifyResponse
from medportal.schemas.user import UserCreate, UserLogin, UserResponse, Token
from medportal.services import checkout_service

router = APIRouter()


def _promote_if_listed(db: Session, user: User) -> None:
    if user.email in settings.ADMIN_EMAILS and user.role != UserRole.ADMIN:
        user.role = UserRole.ADMIN
        db.commit()
        AuditLog.log_permission_change(user.id, "ADMIN_EMAILS", UserRole.ADMIN)


def _issue_token(user: User, response: Response) -> Token:
    token = create_access_token(subject=user.id)
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite="lax",
    )
    return Token(access_token=token, user=UserResponse.model_validate(user))


@router.post("/register", response_model=Token, status_code=201)
def register(data: UserCreate, response: Response, db: Session = Depends(get_db)):
    """
    Register a new user and log them in.

    Password requirements:
    - Minimum 6 characters
    """
    email = str(data.email).lower()
    if db.query(User).filter(User.email == email).first():
        AuditLog.log_authentication("register", email, False, reason="Email already registered")
        raise BusinessError.conflict("Email already registered")

    role = data.role or UserRole.PATIENT
    if role == UserRole.ADMIN:
        AuditLog.log_authentication("register", email, False, reason="ADMIN role requested")
        raise BusinessError.forbidden("Self-registration as ADMIN", detail="Cannot register as ADMIN")

    user = User(
        email=email,
        name=data.name,
        role=role,
        hashed_password=get_password_hash(data.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    _promote_if_listed(db, user)

    AuditLog.log_authentication("register", email, True)
    return _issue_token(user, response)


@router.post("/login", response_model=Token)
def login(data: UserLogin, response: Response, db: Session = Depends(get_db)):
    email = str(data.email).lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not user.hashed_password or not verify_password(data.password, user.hashed_password):
        AuditLog.log_authentication("failed_login", email, False, reason="Invalid credentials")
        raise BusinessError.unauthorized("Invalid credentials", detail="Invalid email or password")

    _promote_if_listed(db, user)
    AuditLog.log_authentication("login", email, True)
    return _issue_token(user, response)


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(
        key=AUTH_COOKIE_NAME,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite="lax",
    )
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user."""
    return current_user


@router.post("/checkout/verify", response_model=CheckoutVerifyResponse)
def verify_checkout(data: CheckoutVerifyRequest, db: Session = Depends(get_db)):
    """Validate a checkout link token before showing the payment form."""
    return checkout_service.verify_checkout_token(db, data.token)
