"""
Sequential order IDs (ORD000001, ORD000002, ...).

The next number comes from an atomic increment on the ``counters`` row named
``order``. The increment runs inside the caller's transaction, so the row stays
locked until the order that consumed the number is committed or rolled back.

When the row does not exist yet (fresh database, or a database created before
the counter table) it is seeded from the newest order that has an ID. If that
ID cannot be parsed, numbering restarts at 1 and the unique index on
``orders.order_id`` is left to reject any collision.
"""

import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from festreg.exceptions import FestError
from festreg.models.order_model import Counter, Order

logger = logging.getLogger(__name__)

ORDER_PREFIX = "ORD"
ORDER_COUNTER = "order"
SEED_ATTEMPTS = 3


def format_order_id(number: int) -> str:
    return f"{ORDER_PREFIX}{number:06d}"


def parse_order_number(order_id):
    """Numeric part of an ORD-prefixed ID, or None when it is not one."""
    if not order_id or not order_id.startswith(ORDER_PREFIX):
        return None
    digits = order_id[len(ORDER_PREFIX):]
    if not digits.isdigit():
        return None
    return int(digits)


def last_issued_number(db: Session) -> int:
    row = (
        db.query(Order.order_id)
        .filter(Order.order_id.isnot(None))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .first()
    )
    if not row:
        return 0
    number = parse_order_number(row[0])
    if number is None:
        logger.warning("Latest order ID %r is not sequential, restarting numbering at 1", row[0])
        return 0
    return number


def next_order_id(db: Session) -> str:
    """Allocate the next order ID.

    Must be called before anything else is added to the session: a lost
    seeding race rolls the transaction back and retries.
    """
    for _ in range(SEED_ATTEMPTS):
        result = db.execute(
            update(Counter)
            .where(Counter.name == ORDER_COUNTER)
            .values(value=Counter.value + 1)
        )
        if result.rowcount:
            value = db.query(Counter.value).filter(Counter.name == ORDER_COUNTER).scalar()
            return format_order_id(value)

        seed = last_issued_number(db) + 1
        db.add(Counter(name=ORDER_COUNTER, value=seed))
        try:
            db.flush()
        except IntegrityError:
            # Another writer seeded the counter first, go round and increment it
            db.rollback()
            continue
        logger.info("Order counter seeded at %s", seed)
        return format_order_id(seed)

    raise FestError("Could not allocate an order ID")
