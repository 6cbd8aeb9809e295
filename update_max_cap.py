#!/usr/bin/env python3
"""
Raise the registration capacity of events that have none or an old default.

    python update_max_cap.py                  # none/30 -> 50
    python update_max_cap.py --from 40 --to 60
"""
import argparse
import logging
import sys
import os

# Add the app directory to the path
app_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'app')
sys.path.insert(0, app_dir)

from sqlalchemy import or_, update

from festreg.logging_config import setup_logging
from festreg.database import SessionLocal
from festreg.models.event_model import Event

logger = logging.getLogger("update_max_cap")


def update_max_cap(old_cap: int, new_cap: int) -> int:
    db = SessionLocal()
    try:
        result = db.execute(
            update(Event)
            .where(or_(Event.max_cap.is_(None), Event.max_cap == old_cap))
            .values(max_cap=new_cap)
        )
        db.commit()
        return result.rowcount
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--from", dest="old_cap", type=int, default=30, help="old capacity to replace")
    parser.add_argument("--to", dest="new_cap", type=int, default=50, help="new capacity")
    args = parser.parse_args()

    setup_logging()
    try:
        count = update_max_cap(args.old_cap, args.new_cap)
    except Exception:
        logger.exception("Failed to update max_cap")
        sys.exit(1)
    logger.info("Set max_cap=%s on %s events", args.new_cap, count)
