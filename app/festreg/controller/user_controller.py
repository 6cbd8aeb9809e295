import logging
import re
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from festreg.controller.order_controller import (
    orders_as_leader, orders_as_member, serialize_order_for_viewer, serialize_order, order_query
)
from festreg.exceptions import ConflictError, NotFoundError, ValidationError
from festreg.models.order_model import Order, OrderStatus
from festreg.models.user_model import User
from festreg.schema.user_schema import IdentityUserData, ProfileUpdate

logger = logging.getLogger(__name__)


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "clerkId": user.clerk_id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "college": user.college,
        "year": user.year,
        "branch": user.branch,
        "phoneNumber": user.phone_number,
        "isAdmin": user.is_admin,
        "createdAt": user.created_at,
        "updatedAt": user.updated_at,
    }


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def retrieve_user_by_clerk_id(db: Session, clerk_id: str) -> Optional[User]:
    return db.query(User).filter(User.clerk_id == clerk_id).first()


# ------------------ Identity provider sync ------------------
def _metadata_fields(data: IdentityUserData) -> dict:
    metadata = data.unsafe_metadata or {}
    return {
        "first_name": data.first_name or "",
        "last_name": data.last_name or "",
        "college": metadata.get("college") or "",
        "year": metadata.get("year") or "",
        "branch": metadata.get("branch") or "",
        "phone_number": metadata.get("phoneNumber") or "",
    }


def sync_user_created(db: Session, data: IdentityUserData) -> User:
    email = data.verified_email()
    if not email:
        raise ValidationError("No verified email")

    existing = retrieve_user_by_clerk_id(db, data.id)
    if existing:
        # Redelivered event
        logger.info("User %s already synced", data.id)
        return existing

    user = User(clerk_id=data.id, email=email, is_admin=False, **_metadata_fields(data))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"User with email {email} already exists")
    db.refresh(user)

    logger.info("User created: %s (identity %s)", user.email, data.id)
    return user


def sync_user_updated(db: Session, data: IdentityUserData) -> Optional[User]:
    user = retrieve_user_by_clerk_id(db, data.id)
    if not user:
        logger.warning("Update for unknown identity %s ignored", data.id)
        return None

    for key, val in _metadata_fields(data).items():
        setattr(user, key, val)
    email = data.verified_email()
    if email:
        user.email = email
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"User with email {email} already exists")
    db.refresh(user)

    logger.info("User updated: %s", data.id)
    return user


def sync_user_deleted(db: Session, clerk_id: str) -> bool:
    user = retrieve_user_by_clerk_id(db, clerk_id)
    if not user:
        return False

    # Orders are never deleted, so neither are the people on them
    in_orders = db.query(Order.id).filter(Order.user_id == user.id).first()
    if in_orders or orders_as_member(db, user.id):
        raise ConflictError("Cannot delete a user that is part of an order")

    db.delete(user)
    db.commit()
    logger.info("User deleted: %s", clerk_id)
    return True


# ------------------ Profile ------------------
def retrieve_profile(db: Session, user: User) -> dict:
    as_leader = [serialize_order_for_viewer(o, user.id) for o in orders_as_leader(db, user.id)]
    as_member = [serialize_order_for_viewer(o, user.id) for o in orders_as_member(db, user.id)]
    orders = as_leader + as_member

    return {
        "user": serialize_user(user),
        "statistics": {
            "totalOrders": len(orders),
            "totalEventsRegistered": sum(len(o["registrations"]) for o in orders),
            "verifiedOrders": sum(1 for o in orders if o["status"] == OrderStatus.VERIFIED.value),
            "pendingOrders": sum(1 for o in orders if o["status"] == OrderStatus.PENDING.value),
            "asLeader": len(as_leader),
            "asMember": len(as_member),
        },
        "registrations": {
            "asLeader": as_leader,
            "asMember": as_member,
        },
    }


def update_profile(db: Session, user: User, payload: ProfileUpdate) -> User:
    update_data = payload.model_dump(exclude_none=True)
    if not update_data:
        raise ValidationError("No fields to update")

    for key, val in update_data.items():
        setattr(user, key, val)
    db.commit()
    db.refresh(user)

    logger.info("Profile updated for %s", user.email)
    return user


# ------------------ Search ------------------
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
AUTOCOMPLETE_MIN_LENGTH = 2
AUTOCOMPLETE_LIMIT = 10


def search_user_by_email(db: Session, email: Optional[str]) -> dict:
    email = (email or "").strip().lower()
    if not email:
        raise ValidationError("Email is required")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format")

    user = db.query(User).filter(func.lower(User.email) == email).first()
    if not user:
        raise NotFoundError("User not found. They need to register first.")
    return {
        "id": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
    }


def search_users_autocomplete(db: Session, query: Optional[str]) -> dict:
    query = (query or "").strip()
    if len(query) < AUTOCOMPLETE_MIN_LENGTH:
        raise ValidationError(f"Query must be at least {AUTOCOMPLETE_MIN_LENGTH} characters")

    search_pattern = f"%{query}%"
    users = (
        db.query(User)
        .filter(
            or_(
                User.first_name.ilike(search_pattern),
                User.last_name.ilike(search_pattern),
                User.email.ilike(search_pattern),
            )
        )
        .order_by(User.first_name, User.last_name, User.id)
        .limit(AUTOCOMPLETE_LIMIT)
        .all()
    )
    logger.debug("Autocomplete '%s' matched %s users", query, len(users))
    return {
        "query": query,
        "count": len(users),
        "users": [
            {
                "id": user.id,
                "firstName": user.first_name,
                "lastName": user.last_name,
                "email": user.email,
                "fullName": f"{user.first_name} {user.last_name}",
            }
            for user in users
        ],
    }


def retrieve_user(db: Session, user_id: int) -> dict:
    return serialize_user(get_user_or_404(db, user_id))


# ======================= Admin =======================

def retrieve_users(db: Session, is_admin: Optional[bool] = None, college: Optional[str] = None) -> dict:
    query = db.query(User)
    if is_admin is not None:
        query = query.filter(User.is_admin == is_admin)
    if college:
        query = query.filter(User.college.ilike(f"%{college}%"))
    users = query.order_by(User.created_at.desc(), User.id.desc()).all()

    counts = dict(
        db.query(Order.user_id, func.count(Order.id))
        .filter(Order.user_id.in_([u.id for u in users]))
        .group_by(Order.user_id)
        .all()
    ) if users else {}

    data = []
    for user in users:
        item = serialize_user(user)
        item["orderCount"] = counts.get(user.id, 0)
        data.append(item)
    return {"count": len(data), "users": data}


def retrieve_user_admin(db: Session, user_id: int) -> dict:
    user = get_user_or_404(db, user_id)
    orders = (
        order_query(db)
        .filter(Order.user_id == user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    return {
        "user": serialize_user(user),
        "orders": [serialize_order(o) for o in orders],
        "orderCount": len(orders),
    }


def toggle_user_admin(db: Session, admin: User, user_id: int) -> User:
    user = get_user_or_404(db, user_id)
    if user.id == admin.id:
        raise ValidationError("Cannot modify your own admin status")

    user.is_admin = not user.is_admin
    db.commit()
    db.refresh(user)

    logger.info("Admin %s set is_admin=%s for %s", admin.email, user.is_admin, user.email)
    return user
