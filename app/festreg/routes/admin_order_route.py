from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends
from sqlalchemy.orm import Session

from festreg.auth import require_admin
from festreg.controller.admin_order_controller import (
    order_rejected_email, order_verified_email, reject_order, retrieve_order, retrieve_orders, verify_order
)
from festreg.controller.email_sender import send_order_rejected_email, send_order_verified_email
from festreg.database import get_db
from festreg.response_model import ResponseModel
from festreg.schema.order_schema import OrderReject

router = APIRouter(dependencies=[Depends(require_admin)])


# ----------------------- GET ALL ORDERS -----------------------
@router.get("", response_description="Retrieve all orders")
def get_orders(
    status: Optional[str] = None,
    event_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    orders = retrieve_orders(db, status, event_id)
    return ResponseModel(orders, "Orders retrieved successfully")


# ----------------------- GET ORDER -----------------------
@router.get("/{order_id}", response_description="Retrieve order")
def get_order(order_id: str, db: Session = Depends(get_db)):
    return ResponseModel(retrieve_order(db, order_id), "Order retrieved successfully")


# ----------------------- VERIFY ORDER -----------------------
@router.put("/{order_id}/verify", response_description="Verify order payment")
def verify_order_data(order_id: str, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    order = verify_order(db, order_id)
    background_tasks.add_task(send_order_verified_email, **order_verified_email(db, order))

    data = {"orderId": order.order_id, "status": order.status, "verifiedAt": order.verified_at}
    return ResponseModel(data, "Order verified successfully")


# ----------------------- REJECT ORDER -----------------------
@router.put("/{order_id}/reject", response_description="Reject order payment")
def reject_order_data(
    order_id: str,
    background_tasks: BackgroundTasks,
    payload: Optional[OrderReject] = Body(None),
    db: Session = Depends(get_db),
):
    order = reject_order(db, order_id, payload.reason if payload else None)
    background_tasks.add_task(send_order_rejected_email, **order_rejected_email(order))

    data = {"orderId": order.order_id, "status": order.status, "rejectionReason": order.rejection_reason}
    return ResponseModel(data, "Order rejected")
