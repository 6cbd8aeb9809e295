from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from festreg.auth import require_admin
from festreg.controller.stats_controller import retrieve_dashboard_stats
from festreg.database import get_db
from festreg.response_model import ResponseModel

router = APIRouter(dependencies=[Depends(require_admin)])


# ----------------------- DASHBOARD -----------------------
@router.get("", response_description="Dashboard statistics")
def get_dashboard_stats(db: Session = Depends(get_db)):
    return ResponseModel(retrieve_dashboard_stats(db), "Dashboard statistics retrieved successfully")
