#!/usr/bin/env python3
"""
Script to create database tables
Run this after the database is created to set up all tables
"""
import logging
import sys
import os

# Add the app directory to the path
app_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'app')
sys.path.insert(0, app_dir)

from festreg.logging_config import setup_logging
from festreg.database import Base, engine
from festreg.models.user_model import User
from festreg.models.event_model import Event
from festreg.models.order_model import Order, Registration, RegistrationMember, Counter

logger = logging.getLogger("create_tables")


def create_tables():
    """Create all database tables"""
    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
        return True
    except Exception:
        logger.exception("Error creating tables")
        return False


if __name__ == "__main__":
    setup_logging()
    sys.exit(0 if create_tables() else 1)
