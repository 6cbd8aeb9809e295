import hmac
import logging
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from festreg.config import IDENTITY_WEBHOOK_SECRET
from festreg.database import get_db
from festreg.exceptions import AuthenticationError, AuthorizationError, FestError, NotFoundError
from festreg.models.user_model import User

logger = logging.getLogger(__name__)


def get_current_user(
    x_clerk_id: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the x-clerk-id header to a synced user."""
    if not x_clerk_id:
        raise AuthenticationError("Unauthorized - No user ID provided")

    user = db.query(User).filter(User.clerk_id == x_clerk_id).first()
    if not user:
        logger.warning("No user synced for identity %s", x_clerk_id)
        raise NotFoundError("User not found")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        logger.warning("Non-admin %s tried an admin route", user.email)
        raise AuthorizationError("Forbidden - Admin access required")
    return user


def verify_webhook_secret(x_webhook_secret: Optional[str] = Header(None)):
    if not IDENTITY_WEBHOOK_SECRET:
        logger.error("IDENTITY_WEBHOOK_SECRET is not configured")
        raise FestError("Webhook secret not configured")
    if not x_webhook_secret or not hmac.compare_digest(x_webhook_secret, IDENTITY_WEBHOOK_SECRET):
        raise AuthenticationError("Invalid webhook secret")
