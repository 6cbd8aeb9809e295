import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from festreg.controller.order_controller import (
    order_query, recipient_of, serialize_order, parse_id
)
from festreg.controller.order_state import next_status
from festreg.database import utcnow
from festreg.exceptions import ConflictError, NotFoundError, ValidationError
from festreg.models.event_model import Event
from festreg.models.order_model import Order, OrderStatus, Registration, RegistrationMember

logger = logging.getLogger(__name__)


# ------------------ Retrieve ALL Orders ------------------
def retrieve_orders(db: Session, status: Optional[str] = None, event_id: Optional[int] = None) -> dict:
    query = order_query(db)
    if status:
        if status not in OrderStatus.__members__:
            raise ValidationError(f"Unknown status: {status}")
        query = query.filter(Order.status == status)
    if event_id:
        query = query.filter(Order.registrations.any(Registration.event_id == event_id))

    orders = query.order_by(Order.created_at.desc(), Order.id.desc()).all()
    verified = [o for o in orders if o.status == OrderStatus.VERIFIED.value]

    return {
        "count": len(orders),
        "summary": {
            "total": len(orders),
            "pending": sum(1 for o in orders if o.status == OrderStatus.PENDING.value),
            "verified": len(verified),
            "rejected": sum(1 for o in orders if o.status == OrderStatus.REJECTED.value),
            "totalRevenue": sum(o.total_amount for o in verified),
        },
        "orders": [serialize_order(o) for o in orders],
    }


def find_order(db: Session, identifier: str) -> Order:
    """Look an order up by its ORD... ID, falling back to the numeric primary key."""
    order = order_query(db).filter(Order.order_id == identifier).first()
    if not order:
        pk = parse_id(identifier)
        if pk is not None:
            order = order_query(db).filter(Order.id == pk).first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def retrieve_order(db: Session, identifier: str) -> dict:
    return serialize_order(find_order(db, identifier), detailed=True)


# ------------------ Status transitions ------------------
def _transition(db: Session, identifier: str, action: str, values: dict) -> Order:
    """Move an order along the state machine with a compare-and-swap on its status.

    The UPDATE only matches while the status is still the one read here, so two
    admins acting on the same order cannot both win. On any refusal nothing is
    written.
    """
    order = find_order(db, identifier)
    pk = order.id
    order_code = order.order_id
    observed = order.status
    target = next_status(observed, action)

    result = db.execute(
        update(Order)
        .where(Order.id == pk, Order.status == observed)
        .values(status=target.value, updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        current = db.query(Order.status).filter(Order.id == pk).scalar()
        # Raises the usual refusal when another admin got there first
        next_status(current, action)
        raise ConflictError("Order was modified by another request, please retry")

    try:
        # Members of rejected orders give their seats back
        db.execute(
            update(RegistrationMember)
            .where(
                RegistrationMember.registration_id.in_(
                    select(Registration.id).where(Registration.order_pk == pk)
                )
            )
            .values(active=target != OrderStatus.REJECTED)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("Order %s %s hit a unique index: %s", order_code, action, e.orig)
        raise ConflictError("One or more team members are already registered for this event in another order")

    db.expire_all()
    return find_order(db, order_code)


# ------------------ Verify Order ------------------
def verify_order(db: Session, identifier: str) -> Order:
    order = _transition(db, identifier, "verify", {"verified_at": utcnow(), "rejection_reason": None})
    logger.info("Order verified: %s", order.order_id)
    return order


def order_verified_email(db: Session, order: Order) -> dict:
    """Email arguments with venue and links read from the catalog now, not from order time."""
    event_ids = [r.event_id for r in order.registrations]
    events = {e.id: e for e in db.query(Event).filter(Event.id.in_(event_ids)).all()}
    return {
        "recipient": recipient_of(order.leader),
        "order_id": order.order_id,
        "events": [
            {
                "name": events[eid].name,
                "venue": events[eid].venue,
                "links": list(events[eid].links or []),
            }
            for eid in event_ids
            if eid in events
        ],
    }


# ------------------ Reject Order ------------------
def reject_order(db: Session, identifier: str, reason: Optional[str]) -> Order:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Rejection reason is required")

    order = _transition(db, identifier, "reject", {"rejection_reason": reason, "verified_at": None})
    logger.info("Order rejected: %s, reason: %s", order.order_id, reason)
    return order


def order_rejected_email(order: Order) -> dict:
    return {
        "recipient": recipient_of(order.leader),
        "order_id": order.order_id,
        "transaction_id": order.transaction_id,
        "reason": order.rejection_reason,
    }
