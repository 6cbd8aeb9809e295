from typing import Optional

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from festreg.auth import require_admin
from festreg.controller.event_controller import (
    add_event, delete_event, retrieve_event_admin, retrieve_events_with_stats,
    serialize_event, toggle_event_active, update_event
)
from festreg.database import get_db
from festreg.response_model import ResponseModel
from festreg.schema.event_schema import EventCreate, EventUpdate

router = APIRouter(dependencies=[Depends(require_admin)])


# ----------------------- GET ALL EVENTS -----------------------
@router.get("", response_description="Retrieve all events with registration stats")
def get_events(
    is_active: Optional[bool] = None,
    category: Optional[str] = None,
    db: Session = Depends(get_db),
):
    events = retrieve_events_with_stats(db, is_active, category)
    return ResponseModel(events, "Events retrieved successfully")


# ----------------------- ADD EVENT -----------------------
@router.post("", response_description="Add event", status_code=status.HTTP_201_CREATED)
def add_event_data(payload: EventCreate = Body(...), db: Session = Depends(get_db)):
    event = add_event(db, payload)
    return ResponseModel(serialize_event(event, full_domains=True), "Event created successfully")


# ----------------------- GET EVENT -----------------------
@router.get("/{event_id}", response_description="Retrieve event")
def get_event(event_id: int, db: Session = Depends(get_db)):
    return ResponseModel(retrieve_event_admin(db, event_id), "Event retrieved successfully")


# ----------------------- UPDATE EVENT -----------------------
@router.put("/{event_id}", response_description="Update event")
def update_event_data(event_id: int, payload: EventUpdate = Body(...), db: Session = Depends(get_db)):
    event = update_event(db, event_id, payload)
    return ResponseModel(serialize_event(event, full_domains=True), "Event updated successfully")


# ----------------------- DELETE EVENT -----------------------
@router.delete("/{event_id}", response_description="Delete event")
def delete_event_data(event_id: int, db: Session = Depends(get_db)):
    deleted = delete_event(db, event_id)
    return ResponseModel(deleted, "Event deleted successfully")


# ----------------------- TOGGLE ACTIVE -----------------------
@router.put("/{event_id}/toggle-active", response_description="Activate or deactivate event")
def toggle_event(event_id: int, db: Session = Depends(get_db)):
    event = toggle_event_active(db, event_id)
    state = "activated" if event.is_active else "deactivated"
    return ResponseModel({"id": event.id, "name": event.name, "isActive": event.is_active}, f"Event {state} successfully")
