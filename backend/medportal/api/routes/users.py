"""User administration. Admin only."""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from medportal.api.deps import get_db, require_admin
from medportal.models.user import User
from medportal.schemas.order import MessageResponse
from medportal.schemas.user import UserResponse, UserUpdate
from medportal.services import user_service

router = APIRouter()


@router.get("", response_model=List[UserResponse])
def list_users(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return user_service.find_all(db)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return user_service.find_one(db, user_id)


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    data: UserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return user_service.update(db, user_id, data, actor=admin)


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(user_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return user_service.remove(db, user_id, actor=admin)
