#!/usr/bin/env python3
"""
Set event fees in bulk: one fee for hackathon events, another for the rest.

    python update_event_fees.py                 # hackathons 75, others 0
    python update_event_fees.py --hackathon 100 --other 50
"""
import argparse
import logging
import sys
import os

# Add the app directory to the path
app_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'app')
sys.path.insert(0, app_dir)

from sqlalchemy import update

from festreg.logging_config import setup_logging
from festreg.database import SessionLocal
from festreg.models.event_model import Event

logger = logging.getLogger("update_event_fees")


def update_event_fees(hackathon_fee: float, other_fee: float):
    """Returns (hackathons updated, other events updated)"""
    db = SessionLocal()
    try:
        hackathons = db.execute(
            update(Event).where(Event.is_hackathon.is_(True)).values(fees=hackathon_fee)
        ).rowcount
        others = db.execute(
            update(Event).where(Event.is_hackathon.is_(False)).values(fees=other_fee)
        ).rowcount
        db.commit()
        return hackathons, others
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--hackathon", type=float, default=75, help="fee for hackathon events")
    parser.add_argument("--other", type=float, default=0, help="fee for all other events")
    args = parser.parse_args()

    setup_logging()
    try:
        hackathons, others = update_event_fees(args.hackathon, args.other)
    except Exception:
        logger.exception("Failed to update event fees")
        sys.exit(1)
    logger.info("Set %s hackathon events to %g and %s other events to %g",
                hackathons, args.hackathon, others, args.other)
