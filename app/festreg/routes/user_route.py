from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from festreg.auth import get_current_user
from festreg.controller.user_controller import (
    retrieve_profile, retrieve_user, search_user_by_email, search_users_autocomplete,
    serialize_user, update_profile
)
from festreg.database import get_db
from festreg.models.user_model import User
from festreg.response_model import ResponseModel
from festreg.schema.user_schema import ProfileUpdate, UserSearch

router = APIRouter()


# ----------------------- GET PROFILE -----------------------
@router.get("/profile", response_description="Caller profile with registrations")
def get_profile(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return ResponseModel(retrieve_profile(db, user), "Profile retrieved successfully")


# ----------------------- UPDATE PROFILE -----------------------
@router.put("/profile", response_description="Update caller profile")
def update_profile_data(
    payload: ProfileUpdate = Body(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updated = update_profile(db, user, payload)
    return ResponseModel(serialize_user(updated), "Profile updated successfully")


# ----------------------- SEARCH USER BY EMAIL -----------------------
@router.post("/users/search", response_description="Find a registered user by email")
def search_user(
    payload: Optional[UserSearch] = Body(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    email = payload.email if payload else None
    return ResponseModel(search_user_by_email(db, email), "User found")


# ----------------------- AUTOCOMPLETE -----------------------
@router.get("/users/search/autocomplete", response_description="Find users by name or email")
def autocomplete_users(
    query: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ResponseModel(search_users_autocomplete(db, query), "Users retrieved successfully")


# ----------------------- GET USER -----------------------
@router.get("/users/{user_id}", response_description="Retrieve a user")
def get_user(user_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return ResponseModel(retrieve_user(db, user_id), "User retrieved successfully")
