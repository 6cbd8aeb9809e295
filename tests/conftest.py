import itertools
import os

# Must be set before festreg.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["IDENTITY_WEBHOOK_SECRET"] = "test-webhook-secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from festreg.database import Base, get_db
from festreg.models.event_model import Event
from festreg.models.user_model import User
from main import app

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_ids = itertools.count(1)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Record outgoing emails instead of talking to SMTP."""
    sent = []

    def recorder(kind):
        def send(**kwargs):
            sent.append((kind, kwargs))
            return True
        return send

    monkeypatch.setattr("festreg.routes.order_route.send_order_created_email", recorder("created"))
    monkeypatch.setattr("festreg.routes.admin_order_route.send_order_verified_email", recorder("verified"))
    monkeypatch.setattr("festreg.routes.admin_order_route.send_order_rejected_email", recorder("rejected"))
    return sent


@pytest.fixture
def make_user(db_session):
    def _make_user(first_name="Test", last_name="User", is_admin=False, **kwargs):
        n = next(_ids)
        user = User(
            clerk_id=kwargs.pop("clerk_id", f"user_{n}"),
            email=kwargs.pop("email", f"user{n}@example.com"),
            first_name=first_name,
            last_name=last_name,
            is_admin=is_admin,
            **kwargs,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_event(db_session):
    def _make_event(name=None, fees=300, team_min=2, team_max=4, **kwargs):
        event = Event(
            name=name or f"Event {next(_ids)}",
            category=kwargs.pop("category", "Technical"),
            fees=fees,
            team_size_min=team_min,
            team_size_max=team_max,
            **kwargs,
        )
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)
        return event
    return _make_event


@pytest.fixture
def admin(make_user):
    return make_user("Ada", "Admin", is_admin=True)


def auth(user):
    return {"x-clerk-id": user.clerk_id}


HACKATHON_DOMAINS = [
    {
        "domain_id": "AI",
        "name": "Artificial Intelligence",
        "description": "Models and agents",
        "problem_statements": [
            {"ps_id": "AI01", "title": "Crop advisor", "description": None, "difficulty": "Medium"},
            {"ps_id": "AI02", "title": "Campus chatbot", "description": None, "difficulty": "Easy"},
        ],
    },
    {
        "domain_id": "WEB",
        "name": "Web",
        "description": None,
        "problem_statements": [
            {"ps_id": "WEB01", "title": "Event portal", "description": None, "difficulty": "Hard"},
        ],
    },
]
