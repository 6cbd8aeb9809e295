import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from festreg.controller.order_sequence import next_order_id
from festreg.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from festreg.models.event_model import Event
from festreg.models.order_model import (
    ACTIVE_STATUSES, Order, OrderStatus, Registration, RegistrationMember
)
from festreg.models.user_model import User
from festreg.schema.order_schema import OrderCreate, RegistrationIn

logger = logging.getLogger(__name__)

TRANSACTION_USED = "Transaction ID already used. Please use a unique transaction ID."


def parse_id(value) -> Optional[int]:
    """Integer primary key from a client supplied ID, None when it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
        return number if number > 0 else None
    return None


def integrity_conflict(error: IntegrityError) -> ConflictError:
    """Translate a unique index violation into the message the app-level check would give."""
    detail = str(error.orig).lower()
    if "transaction_id" in detail:
        return ConflictError(TRANSACTION_USED)
    if "registration_members" in detail:
        return ConflictError("One or more team members are already registered for this event")
    if "order_id" in detail:
        return ConflictError("Could not allocate a unique order ID, please retry")
    return ConflictError("Order conflicts with existing data")


# ------------------ Registration conflict check ------------------
def find_registration_conflicts(db: Session, event_id: int, member_ids: List[int]) -> List[User]:
    """Members that already hold a PENDING or VERIFIED registration for the event.

    Returned in the order they were submitted so the error message reads the
    way the team was typed in.
    """
    if not member_ids:
        return []
    taken = (
        db.query(User)
        .join(RegistrationMember, RegistrationMember.user_id == User.id)
        .join(Registration, Registration.id == RegistrationMember.registration_id)
        .join(Order, Order.id == Registration.order_pk)
        .filter(
            RegistrationMember.event_id == event_id,
            RegistrationMember.user_id.in_(member_ids),
            Order.status.in_(ACTIVE_STATUSES),
        )
        .distinct()
        .all()
    )
    position = {uid: i for i, uid in enumerate(member_ids)}
    return sorted(taken, key=lambda user: position[user.id])


def count_active_registrations(db: Session, event_id: int) -> int:
    return (
        db.query(func.count(Registration.id))
        .join(Order, Order.id == Registration.order_pk)
        .filter(Registration.event_id == event_id, Order.status.in_(ACTIVE_STATUSES))
        .scalar()
    )


# ------------------ Registration validation ------------------
def validate_registration(db: Session, leader: User, reg: RegistrationIn, seen_events: set) -> Tuple[Event, List[int]]:
    event_pk = parse_id(reg.event_id)
    if event_pk is None:
        raise ValidationError(f"Invalid event ID: {reg.event_id}")

    event = db.query(Event).filter(Event.id == event_pk).first()
    if not event:
        raise NotFoundError(f"Event not found: {reg.event_id}")

    if not event.is_active:
        raise ValidationError(f'Event "{event.name}" is not currently active')

    if event.id in seen_events:
        raise ValidationError(f'Event "{event.name}" appears more than once in this order')
    seen_events.add(event.id)

    members = reg.team_members or []
    if not members:
        raise ValidationError(f'Team members are required for "{event.name}"')

    if len(members) < event.team_size_min or len(members) > event.team_size_max:
        raise ValidationError(
            f'Team size for "{event.name}" must be between '
            f"{event.team_size_min} and {event.team_size_max} members"
        )

    member_ids = []
    for raw in members:
        member_id = parse_id(raw)
        if member_id is None:
            raise ValidationError(f"Invalid team member ID: {raw}")
        member_ids.append(member_id)

    if leader.id not in member_ids:
        raise ValidationError("You (team leader) must be included in the team members list")

    if len(set(member_ids)) != len(member_ids):
        raise ValidationError(f'Duplicate team members found in "{event.name}"')

    found = db.query(func.count(User.id)).filter(User.id.in_(member_ids)).scalar()
    if found != len(member_ids):
        raise NotFoundError("One or more team members not found")

    conflicts = find_registration_conflicts(db, event.id, member_ids)
    if conflicts:
        names = ", ".join(user.full_name for user in conflicts)
        raise ConflictError(f'Following members are already registered for "{event.name}": {names}')

    if event.max_cap is not None and count_active_registrations(db, event.id) >= event.max_cap:
        raise ValidationError(f'Registrations for "{event.name}" are full')

    if event.is_hackathon:
        if not reg.selected_domain or not reg.selected_ps:
            raise ValidationError(
                f'Domain and Problem Statement selection required for hackathon "{event.name}"'
            )
        domain = event.find_domain(reg.selected_domain)
        if not domain:
            raise ValidationError(f'Invalid domain "{reg.selected_domain}" for hackathon "{event.name}"')
        if not event.find_problem_statement(reg.selected_domain, reg.selected_ps):
            raise ValidationError(
                f'Invalid problem statement "{reg.selected_ps}" in domain "{domain.get("name")}"'
            )

    return event, member_ids


# ------------------ Create Order ------------------
def create_order(db: Session, leader: User, payload: OrderCreate) -> Order:
    registrations = payload.registrations or []
    if not registrations:
        raise ValidationError("At least one event registration is required")

    transaction_id = (payload.transaction_id or "").strip()
    if not transaction_id:
        raise ValidationError("Transaction ID is required")

    if db.query(Order.id).filter(Order.transaction_id == transaction_id).first():
        raise ConflictError(TRANSACTION_USED)

    total_amount = 0
    validated = []
    seen_events = set()
    for reg in registrations:
        event, member_ids = validate_registration(db, leader, reg, seen_events)
        total_amount += event.fees
        # Selections only mean something on hackathons
        domain = reg.selected_domain if event.is_hackathon else None
        ps = reg.selected_ps if event.is_hackathon else None
        validated.append((event.id, member_ids, domain, ps))

    leader_id = leader.id
    order_id = next_order_id(db)

    order = Order(
        order_id=order_id,
        user_id=leader_id,
        transaction_id=transaction_id,
        total_amount=total_amount,
        status=OrderStatus.PENDING.value,
    )
    for event_id, member_ids, domain, ps in validated:
        registration = Registration(event_id=event_id, selected_domain=domain, selected_ps=ps)
        registration.members = [
            RegistrationMember(user_id=member_id, event_id=event_id, active=True, position=i)
            for i, member_id in enumerate(member_ids)
        ]
        order.registrations.append(registration)

    db.add(order)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("Order for user %s hit a unique index: %s", leader_id, e.orig)
        raise integrity_conflict(e)
    db.refresh(order)

    logger.info("Order created: %s by user %s, amount %s", order.order_id, leader_id, total_amount)
    return order


def order_created_email(order: Order) -> dict:
    """Arguments for email_sender.send_order_created_email."""
    return {
        "recipient": recipient_of(order.leader),
        "order_id": order.order_id,
        "events": [{"name": r.event.name, "fees": r.event.fees} for r in order.registrations],
        "total_amount": order.total_amount,
        "transaction_id": order.transaction_id,
    }


def recipient_of(user: User) -> dict:
    return {"email": user.email, "first_name": user.first_name, "last_name": user.last_name}


# ------------------ Serialisation ------------------
def serialize_event_brief(event: Event) -> dict:
    return {
        "id": event.id,
        "name": event.name,
        "category": event.category,
        "fees": event.fees,
        "venue": event.venue,
        "logo": event.logo,
        "isActive": event.is_active,
    }


def serialize_member(user: User, detailed: bool = False) -> dict:
    data = {
        "id": user.id,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
        "phoneNumber": user.phone_number,
    }
    if detailed:
        data.update({"college": user.college, "year": user.year, "branch": user.branch})
    return data


def serialize_registration(registration: Registration, detailed: bool = False) -> dict:
    return {
        "event": serialize_event_brief(registration.event),
        "teamMembers": [serialize_member(m.user, detailed) for m in registration.members],
        "selectedDomain": registration.selected_domain,
        "selectedPS": registration.selected_ps,
    }


def serialize_order(order: Order, detailed: bool = False) -> dict:
    return {
        "id": order.id,
        "orderId": order.order_id,
        "teamLeader": serialize_member(order.leader, detailed),
        "totalAmount": order.total_amount,
        "status": order.status,
        "transactionId": order.transaction_id,
        "createdAt": order.created_at,
        "verifiedAt": order.verified_at,
        "rejectionReason": order.rejection_reason,
        "registrations": [serialize_registration(r, detailed) for r in order.registrations],
    }


def serialize_order_for_viewer(order: Order, viewer_id: int, detailed: bool = False) -> dict:
    """Leaders see the whole order; members only the teams they are on."""
    if order.user_id == viewer_id:
        data = serialize_order(order, detailed)
        data["role"] = "Leader"
        return data

    data = {
        "orderId": order.order_id,
        "role": "Member",
        "teamLeader": {
            "firstName": order.leader.first_name,
            "lastName": order.leader.last_name,
            "email": order.leader.email,
        },
        "status": order.status,
        "createdAt": order.created_at,
        "verifiedAt": order.verified_at,
        "registrations": [
            serialize_registration(r, detailed)
            for r in order.registrations
            if viewer_id in r.member_ids
        ],
    }
    return data


# ------------------ Retrieve Orders ------------------
def order_query(db: Session):
    return db.query(Order).options(
        joinedload(Order.leader),
        selectinload(Order.registrations).joinedload(Registration.event),
        selectinload(Order.registrations)
        .selectinload(Registration.members)
        .joinedload(RegistrationMember.user),
    )


def orders_as_leader(db: Session, user_id: int) -> List[Order]:
    return (
        order_query(db)
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def orders_as_member(db: Session, user_id: int) -> List[Order]:
    return (
        order_query(db)
        .filter(
            Order.user_id != user_id,
            Order.registrations.any(Registration.members.any(RegistrationMember.user_id == user_id)),
        )
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def retrieve_user_orders(db: Session, user: User) -> dict:
    as_leader = [serialize_order_for_viewer(o, user.id) for o in orders_as_leader(db, user.id)]
    as_member = [serialize_order_for_viewer(o, user.id) for o in orders_as_member(db, user.id)]
    orders = as_leader + as_member

    return {
        "count": len(orders),
        "summary": {
            "asLeader": len(as_leader),
            "asMember": len(as_member),
            "pending": sum(1 for o in orders if o["status"] == OrderStatus.PENDING.value),
            "verified": sum(1 for o in orders if o["status"] == OrderStatus.VERIFIED.value),
            "rejected": sum(1 for o in orders if o["status"] == OrderStatus.REJECTED.value),
        },
        "orders": orders,
    }


def retrieve_order_for_user(db: Session, user: User, order_id: str) -> dict:
    order = order_query(db).filter(Order.order_id == order_id).first()
    if not order:
        raise NotFoundError("Order not found")

    is_leader = order.user_id == user.id
    is_member = any(user.id in r.member_ids for r in order.registrations)
    if not is_leader and not is_member:
        raise AuthorizationError("You do not have access to this order")

    return serialize_order_for_viewer(order, user.id, detailed=True)
