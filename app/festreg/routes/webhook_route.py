import logging

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from festreg.auth import verify_webhook_secret
from festreg.controller.user_controller import sync_user_created, sync_user_deleted, sync_user_updated
from festreg.database import get_db
from festreg.response_model import ResponseModel
from festreg.schema.user_schema import IdentityEvent

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_webhook_secret)])


# ----------------------- IDENTITY SYNC -----------------------
@router.post("/identity", response_description="Identity provider user sync")
def identity_webhook(event: IdentityEvent = Body(...), db: Session = Depends(get_db)):
    logger.info("Received webhook event: %s", event.type)

    if event.type == "user.created":
        sync_user_created(db, event.data)
    elif event.type == "user.updated":
        sync_user_updated(db, event.data)
    elif event.type == "user.deleted":
        sync_user_deleted(db, event.data.id)
    else:
        logger.info("Ignoring webhook event %s", event.type)

    return ResponseModel(None, "Webhook processed")
