from enum import Enum
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, ForeignKey,
    Index, UniqueConstraint, CheckConstraint, text
)
from sqlalchemy.orm import relationship
from festreg.database import Base, utcnow


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


# Orders in these states hold their team members' seats for the event
ACTIVE_STATUSES = (OrderStatus.PENDING.value, OrderStatus.VERIFIED.value)


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("status IN ('PENDING', 'VERIFIED', 'REJECTED')", name="ck_orders_status"),
        CheckConstraint("total_amount >= 0", name="ck_orders_total_amount"),
        Index("ix_orders_user_status", "user_id", "status"),
        Index("ix_orders_status_created", "status", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Human readable ID, ORD000001 onwards
    order_id = Column(String, nullable=False, unique=True, index=True)

    # Team leader
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Sparse: unique among orders that carry one
    transaction_id = Column(String, nullable=True, unique=True)

    total_amount = Column(Float, nullable=False, default=0)
    status = Column(String, nullable=False, default=OrderStatus.PENDING.value, index=True)
    verified_at = Column(DateTime, nullable=True)
    rejection_reason = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    leader = relationship("User", back_populates="orders")
    registrations = relationship(
        "Registration",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="Registration.id",
    )


class Registration(Base):
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, index=True)
    order_pk = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)

    selected_domain = Column(String, nullable=True)
    selected_ps = Column(String, nullable=True)

    # Relationships
    order = relationship("Order", back_populates="registrations")
    event = relationship("Event", back_populates="registrations")
    members = relationship(
        "RegistrationMember",
        back_populates="registration",
        cascade="all, delete-orphan",
        order_by="RegistrationMember.position",
    )

    @property
    def member_ids(self):
        return [member.user_id for member in self.members]


class RegistrationMember(Base):
    __tablename__ = "registration_members"
    __table_args__ = (
        UniqueConstraint("registration_id", "user_id", name="uq_registration_members_member"),
        Index("ix_registration_members_event_user", "event_id", "user_id"),
        # A user holds at most one live seat per event. Rows of rejected orders are
        # flagged inactive and drop out of this index.
        Index(
            "uq_registration_members_active_seat",
            "event_id",
            "user_id",
            unique=True,
            postgresql_where=text("active"),
            sqlite_where=text("active = 1"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    registration_id = Column(Integer, ForeignKey("registrations.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Copied from the registration so the seat index can live on this table
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    position = Column(Integer, nullable=False, default=0)

    # Relationships
    registration = relationship("Registration", back_populates="members")
    user = relationship("User")


class Counter(Base):
    __tablename__ = "counters"

    name = Column(String, primary_key=True)
    value = Column(Integer, nullable=False, default=0)
