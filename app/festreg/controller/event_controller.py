import logging
from typing import Optional

from pydantic.alias_generators import to_camel
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from festreg.controller.order_controller import count_active_registrations
from festreg.exceptions import ConflictError, NotFoundError, ValidationError
from festreg.models.event_model import Event
from festreg.models.order_model import Order, OrderStatus, Registration
from festreg.schema.event_schema import EventCreate, EventUpdate

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20


def camel_keys(value):
    if isinstance(value, dict):
        return {to_camel(k): camel_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [camel_keys(v) for v in value]
    return value


# ------------------ Serialisation ------------------
def serialize_event(event: Event, full_domains: bool = False) -> dict:
    data = {
        "id": event.id,
        "name": event.name,
        "description": event.description,
        "introduction": event.introduction,
        "category": event.category,
        "venue": event.venue,
        "logo": event.logo,
        "fees": event.fees,
        "teamSize": {"min": event.team_size_min, "max": event.team_size_max},
        "maxCap": event.max_cap,
        "isActive": event.is_active,
        "isHackathon": event.is_hackathon,
        "contact": list(event.contact or []),
        "prizes": camel_keys(event.prizes or []),
        "schedule": camel_keys(event.schedule or []),
        "rules": camel_keys(event.rules or []),
        "platform": camel_keys(event.platform or []),
        "links": camel_keys(event.links or []),
        "createdAt": event.created_at,
        "updatedAt": event.updated_at,
    }
    if full_domains:
        data["domains"] = camel_keys(event.domains or [])
    elif event.is_hackathon:
        # Public detail shows the tracks only; problem statements come from /domains
        data["domains"] = [
            {
                "domainId": d.get("domain_id"),
                "name": d.get("name"),
                "description": d.get("description"),
                "problemStatementsCount": len(d.get("problem_statements") or []),
            }
            for d in event.domains or []
        ]
    else:
        data["domains"] = []
    return data


def serialize_event_summary(event: Event) -> dict:
    return {
        "id": event.id,
        "name": event.name,
        "description": event.description,
        "fees": event.fees,
        "category": event.category,
        "venue": event.venue,
        "logo": event.logo,
        "teamSize": {"min": event.team_size_min, "max": event.team_size_max},
        "isHackathon": event.is_hackathon,
        "isActive": event.is_active,
        "contact": list(event.contact or []),
        "createdAt": event.created_at,
    }


def get_event_or_404(db: Session, event_id: int) -> Event:
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise NotFoundError("Event not found")
    return event


# ------------------ Retrieve ALL Events ------------------
def retrieve_events(db: Session, category: Optional[str] = None, is_active: Optional[bool] = True) -> dict:
    query = db.query(Event)
    if is_active is not None:
        query = query.filter(Event.is_active == is_active)
    if category:
        query = query.filter(Event.category == category)
    events = query.order_by(Event.created_at.desc(), Event.id.desc()).all()

    events_by_category = {}
    for event in events:
        events_by_category.setdefault(event.category, []).append(serialize_event_summary(event))

    categories = [
        row[0]
        for row in db.query(Event.category).filter(Event.is_active.is_(True)).distinct().order_by(Event.category)
    ]

    return {
        "count": len(events),
        "categories": categories,
        "eventsByCategory": events_by_category,
        "events": [serialize_event_summary(e) for e in events],
    }


# ------------------ Retrieve Event by id ------------------
def retrieve_event(db: Session, event_id: int) -> dict:
    return serialize_event(get_event_or_404(db, event_id))


# ------------------ Retrieve Events by category ------------------
def retrieve_events_by_category(db: Session, category: str) -> dict:
    events = (
        db.query(Event)
        .filter(Event.category == category, Event.is_active.is_(True))
        .order_by(Event.created_at.desc(), Event.id.desc())
        .all()
    )
    if not events:
        raise NotFoundError(f"No active events found in category: {category}")
    return {
        "category": category,
        "count": len(events),
        "events": [serialize_event_summary(e) for e in events],
    }


# ------------------ Categories with counts ------------------
def retrieve_categories(db: Session) -> dict:
    rows = (
        db.query(Event.category, func.count(Event.id))
        .filter(Event.is_active.is_(True))
        .group_by(Event.category)
        .order_by(Event.category)
        .all()
    )
    return {
        "count": len(rows),
        "categories": [{"category": category, "count": count} for category, count in rows],
    }


# ------------------ Search Events ------------------
def search_events(db: Session, q: Optional[str]) -> dict:
    if not q or not q.strip():
        raise ValidationError("Search query is required")

    search_pattern = f"%{q.strip()}%"
    events = (
        db.query(Event)
        .filter(
            Event.is_active.is_(True),
            or_(
                Event.name.ilike(search_pattern),
                Event.description.ilike(search_pattern),
                Event.category.ilike(search_pattern),
            ),
        )
        .order_by(Event.name)
        .limit(SEARCH_LIMIT)
        .all()
    )
    return {
        "query": q,
        "count": len(events),
        "events": [serialize_event_summary(e) for e in events],
    }


# ------------------ Hackathon domains ------------------
def retrieve_event_domains(db: Session, event_id: int) -> dict:
    event = get_event_or_404(db, event_id)
    if not event.is_hackathon:
        raise ValidationError("This event is not a hackathon")
    if not event.domains:
        raise NotFoundError("No domains found for this hackathon")
    return {
        "eventName": event.name,
        "domainsCount": len(event.domains),
        "domains": camel_keys(event.domains),
    }


# ======================= Admin =======================

def registration_stats(db: Session, event_id: int) -> dict:
    total = count_active_registrations(db, event_id)
    verified = (
        db.query(func.count(Registration.id))
        .join(Order, Order.id == Registration.order_pk)
        .filter(Registration.event_id == event_id, Order.status == OrderStatus.VERIFIED.value)
        .scalar()
    )
    return {
        "totalRegistrations": total,
        "verifiedRegistrations": verified,
        "pendingRegistrations": total - verified,
    }


# ------------------ Retrieve ALL Events with stats ------------------
def retrieve_events_with_stats(db: Session, is_active: Optional[bool] = None, category: Optional[str] = None) -> dict:
    query = db.query(Event)
    if is_active is not None:
        query = query.filter(Event.is_active == is_active)
    if category:
        query = query.filter(Event.category == category)
    events = query.order_by(Event.created_at.desc(), Event.id.desc()).all()

    data = []
    for event in events:
        item = serialize_event(event, full_domains=True)
        item["stats"] = registration_stats(db, event.id)
        data.append(item)
    return {"count": len(data), "events": data}


def retrieve_event_admin(db: Session, event_id: int) -> dict:
    event = get_event_or_404(db, event_id)
    registrations = (
        db.query(func.count(Registration.id)).filter(Registration.event_id == event.id).scalar()
    )
    return {"event": serialize_event(event, full_domains=True), "registrations": registrations}


def _check_event_rules(name, category, fees, team_min, team_max, is_hackathon, domains):
    if not name or not category or fees is None:
        raise ValidationError("Name, fees, and category are required")
    if team_min is None or team_max is None:
        raise ValidationError("Team size (min and max) is required")
    if team_min > team_max:
        raise ValidationError("Min team size cannot be greater than max")

    if is_hackathon:
        if not domains:
            raise ValidationError("Domains are required for hackathon events")
        domain_ids = set()
        for domain in domains:
            if domain["domain_id"] in domain_ids:
                raise ValidationError(f'Duplicate domain ID "{domain["domain_id"]}"')
            domain_ids.add(domain["domain_id"])
            statements = domain.get("problem_statements") or []
            if not statements:
                raise ValidationError(f'Domain "{domain["name"]}" must have at least one problem statement')
            ps_ids = [ps["ps_id"] for ps in statements]
            if len(set(ps_ids)) != len(ps_ids):
                raise ValidationError(f'Duplicate problem statement ID in domain "{domain["name"]}"')


def _name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Event.id).filter(Event.name == name)
    if exclude_id is not None:
        query = query.filter(Event.id != exclude_id)
    return query.first() is not None


def _commit_event(db: Session, event: Event):
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("Event write hit a constraint: %s", e.orig)
        raise ConflictError("Event with this name already exists")
    db.refresh(event)


# ------------------ Add New Event ------------------
def add_event(db: Session, payload: EventCreate) -> Event:
    event_data = payload.model_dump(mode="json", exclude={"team_size"})
    name = (event_data.get("name") or "").strip()
    category = (event_data.get("category") or "").strip()
    team_size = payload.team_size

    _check_event_rules(
        name,
        category,
        event_data.get("fees"),
        team_size.min if team_size else None,
        team_size.max if team_size else None,
        event_data["is_hackathon"],
        event_data["domains"],
    )

    if _name_taken(db, name):
        raise ConflictError("Event with this name already exists")

    event_data.update(
        name=name,
        category=category,
        team_size_min=team_size.min,
        team_size_max=team_size.max,
    )
    new_event = Event(**event_data)
    db.add(new_event)
    _commit_event(db, new_event)

    logger.info("Event created: %s (%s)", new_event.name, new_event.id)
    return new_event


# ------------------ Update Event ------------------
def update_event(db: Session, event_id: int, payload: EventUpdate) -> Event:
    event = get_event_or_404(db, event_id)
    update_data = payload.model_dump(mode="json", exclude_unset=True, exclude={"team_size"})

    # Only max_cap may be cleared; a null anywhere else means "leave as is"
    update_data = {k: v for k, v in update_data.items() if v is not None or k == "max_cap"}
    if "name" in update_data:
        update_data["name"] = update_data["name"].strip()
    if "category" in update_data:
        update_data["category"] = update_data["category"].strip()
    if payload.team_size is not None:
        update_data["team_size_min"] = payload.team_size.min
        update_data["team_size_max"] = payload.team_size.max

    merged = {
        "name": update_data.get("name", event.name),
        "category": update_data.get("category", event.category),
        "fees": update_data.get("fees", event.fees),
        "team_min": update_data.get("team_size_min", event.team_size_min),
        "team_max": update_data.get("team_size_max", event.team_size_max),
        "is_hackathon": update_data.get("is_hackathon", event.is_hackathon),
        "domains": update_data.get("domains", event.domains),
    }
    _check_event_rules(**merged)

    if merged["name"] != event.name and _name_taken(db, merged["name"], exclude_id=event.id):
        raise ConflictError("Event with this name already exists")

    for key, val in update_data.items():
        setattr(event, key, val)
    _commit_event(db, event)

    logger.info("Event updated: %s (%s)", event.name, event.id)
    return event


# ------------------ Delete Event ------------------
def delete_event(db: Session, event_id: int) -> dict:
    event = get_event_or_404(db, event_id)

    active = count_active_registrations(db, event.id)
    if active > 0:
        raise ConflictError(
            f"Cannot delete event with {active} active registrations. Set isActive to false instead."
        )

    # Rejected orders still point at the event and orders are never deleted
    referenced = db.query(Registration.id).filter(Registration.event_id == event.id).first()
    if referenced:
        raise ConflictError("Cannot delete an event that has order history. Set isActive to false instead.")

    data = {"id": event.id, "name": event.name}
    db.delete(event)
    db.commit()

    logger.info("Event deleted: %s (%s)", data["name"], data["id"])
    return data


# ------------------ Toggle Event active ------------------
def toggle_event_active(db: Session, event_id: int) -> Event:
    event = get_event_or_404(db, event_id)
    event.is_active = not event.is_active
    db.commit()
    db.refresh(event)

    logger.info("Event %s is now %s", event.name, "ACTIVE" if event.is_active else "INACTIVE")
    return event
