from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from festreg.auth import require_admin
from festreg.controller.user_controller import (
    retrieve_user_admin, retrieve_users, toggle_user_admin
)
from festreg.database import get_db
from festreg.models.user_model import User
from festreg.response_model import ResponseModel

router = APIRouter()


# ----------------------- GET ALL USERS -----------------------
@router.get("", response_description="Retrieve all users")
def get_users(
    is_admin: Optional[bool] = None,
    college: Optional[str] = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return ResponseModel(retrieve_users(db, is_admin, college), "Users retrieved successfully")


# ----------------------- GET USER -----------------------
@router.get("/{user_id}", response_description="Retrieve user with orders")
def get_user(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return ResponseModel(retrieve_user_admin(db, user_id), "User retrieved successfully")


# ----------------------- TOGGLE ADMIN -----------------------
@router.put("/{user_id}/toggle-admin", response_description="Grant or revoke admin")
def toggle_admin(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    user = toggle_user_admin(db, admin, user_id)
    state = "granted" if user.is_admin else "revoked"
    return ResponseModel(
        {"id": user.id, "email": user.email, "isAdmin": user.is_admin},
        f"Admin access {state} successfully",
    )
