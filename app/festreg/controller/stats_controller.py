import datetime
import logging
from collections import Counter as Tally

from sqlalchemy import func
from sqlalchemy.orm import Session

from festreg.controller.order_controller import order_query, serialize_order
from festreg.database import utcnow
from festreg.models.event_model import Event
from festreg.models.order_model import ACTIVE_STATUSES, Order, OrderStatus, Registration
from festreg.models.user_model import User

logger = logging.getLogger(__name__)

RECENT_ORDERS = 10
POPULAR_EVENTS = 5
TREND_DAYS = 7


def _status_totals(db: Session) -> dict:
    rows = (
        db.query(Order.status, func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0))
        .group_by(Order.status)
        .all()
    )
    return {status: (count, amount) for status, count, amount in rows}


def popular_events(db: Session, limit: int = POPULAR_EVENTS) -> list:
    rows = (
        db.query(Event, func.count(Registration.id).label("registrations"))
        .join(Registration, Registration.event_id == Event.id)
        .join(Order, Order.id == Registration.order_pk)
        .filter(Order.status.in_(ACTIVE_STATUSES))
        .group_by(Event.id)
        .order_by(func.count(Registration.id).desc(), Event.id)
        .limit(limit)
        .all()
    )
    return [
        {
            "event": {"id": event.id, "name": event.name, "category": event.category, "fees": event.fees},
            "registrations": registrations,
        }
        for event, registrations in rows
    ]


def orders_trend(db: Session, days: int = TREND_DAYS) -> list:
    since = utcnow() - datetime.timedelta(days=days)
    rows = db.query(Order.created_at, Order.status).filter(Order.created_at >= since).all()
    tally = Tally((created_at.strftime("%Y-%m-%d"), status) for created_at, status in rows)
    return [
        {"date": date, "status": status, "count": count}
        for (date, status), count in sorted(tally.items())
    ]


# ------------------ Dashboard ------------------
def retrieve_dashboard_stats(db: Session) -> dict:
    total_users = db.query(func.count(User.id)).scalar()
    admin_users = db.query(func.count(User.id)).filter(User.is_admin.is_(True)).scalar()

    total_events = db.query(func.count(Event.id)).scalar()
    active_events = db.query(func.count(Event.id)).filter(Event.is_active.is_(True)).scalar()

    totals = _status_totals(db)
    pending, pending_revenue = totals.get(OrderStatus.PENDING.value, (0, 0))
    verified, total_revenue = totals.get(OrderStatus.VERIFIED.value, (0, 0))
    rejected, _ = totals.get(OrderStatus.REJECTED.value, (0, 0))

    recent = (
        order_query(db)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(RECENT_ORDERS)
        .all()
    )

    return {
        "stats": {
            "users": {
                "total": total_users,
                "admins": admin_users,
                "regular": total_users - admin_users,
            },
            "events": {
                "total": total_events,
                "active": active_events,
                "inactive": total_events - active_events,
            },
            "orders": {
                "total": pending + verified + rejected,
                "pending": pending,
                "verified": verified,
                "rejected": rejected,
            },
            "revenue": {
                "total": total_revenue,
                "pending": pending_revenue,
                "average": round(total_revenue / verified) if verified else 0,
            },
        },
        "recentOrders": [serialize_order(o) for o in recent],
        "popularEvents": popular_events(db),
        "ordersTrend": orders_trend(db),
    }
