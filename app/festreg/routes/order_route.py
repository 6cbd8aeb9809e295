from fastapi import APIRouter, BackgroundTasks, Body, Depends, status
from sqlalchemy.orm import Session

from festreg.auth import get_current_user
from festreg.controller.email_sender import send_order_created_email
from festreg.controller.order_controller import (
    create_order, order_created_email, retrieve_order_for_user, retrieve_user_orders
)
from festreg.database import get_db
from festreg.models.user_model import User
from festreg.response_model import ResponseModel
from festreg.schema.order_schema import OrderCreate

router = APIRouter()


# ----------------------- CREATE ORDER -----------------------
@router.post("", response_description="Create order", status_code=status.HTTP_201_CREATED)
def add_order(
    background_tasks: BackgroundTasks,
    payload: OrderCreate = Body(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    order = create_order(db, user, payload)
    background_tasks.add_task(send_order_created_email, **order_created_email(order))

    data = {
        "orderId": order.order_id,
        "totalAmount": order.total_amount,
        "status": order.status,
        "transactionId": order.transaction_id,
        "createdAt": order.created_at,
        "registrationsCount": len(order.registrations),
    }
    return ResponseModel(data, "Order created successfully. Awaiting payment verification.")


# ----------------------- MY ORDERS -----------------------
@router.get("", response_description="Orders the caller leads or is a member of")
def get_my_orders(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    orders = retrieve_user_orders(db, user)
    return ResponseModel(orders, "Orders retrieved successfully")


# ----------------------- ORDER DETAIL -----------------------
@router.get("/{order_id}", response_description="Order detail")
def get_order(order_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    order = retrieve_order_for_user(db, user, order_id)
    return ResponseModel(order, "Order retrieved successfully")
