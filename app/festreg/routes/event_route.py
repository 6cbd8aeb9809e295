from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from festreg.controller.event_controller import (
    retrieve_categories, retrieve_event, retrieve_event_domains, retrieve_events,
    retrieve_events_by_category, search_events
)
from festreg.database import get_db
from festreg.response_model import ResponseModel

router = APIRouter()


# ----------------------- GET ALL EVENTS -----------------------
@router.get("", response_description="Retrieve all events")
def get_events(
    category: Optional[str] = None,
    is_active: Optional[bool] = True,
    db: Session = Depends(get_db),
):
    events = retrieve_events(db, category, is_active)
    return ResponseModel(events, "Events retrieved successfully")


# ----------------------- CATEGORIES -----------------------
@router.get("/categories/list", response_description="Active categories with counts")
def get_categories(db: Session = Depends(get_db)):
    return ResponseModel(retrieve_categories(db), "Categories retrieved successfully")


# ----------------------- SEARCH EVENTS -----------------------
@router.get("/search", response_description="Search events")
def search_event(q: Optional[str] = None, db: Session = Depends(get_db)):
    return ResponseModel(search_events(db, q), "Search completed")


# ----------------------- EVENTS BY CATEGORY -----------------------
@router.get("/category/{category}", response_description="Events in a category")
def get_events_by_category(category: str, db: Session = Depends(get_db)):
    return ResponseModel(retrieve_events_by_category(db, category), "Events retrieved successfully")


# ----------------------- GET EVENT -----------------------
@router.get("/{event_id}", response_description="Retrieve event")
def get_event(event_id: int, db: Session = Depends(get_db)):
    return ResponseModel(retrieve_event(db, event_id), "Event retrieved successfully")


# ----------------------- HACKATHON DOMAINS -----------------------
@router.get("/{event_id}/domains", response_description="Hackathon domains and problem statements")
def get_event_domains(event_id: int, db: Session = Depends(get_db)):
    return ResponseModel(retrieve_event_domains(db, event_id), "Domains retrieved successfully")
