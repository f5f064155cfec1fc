# slotkeeper/models/resource.py
"""
Bookable resources and their published schedule.

A resource (an instructor, a vehicle) publishes a weekly template of
availability windows. Blocked ranges take time away for a specific date and
extra slots add one-off windows for a specific date.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base


class Resource(Base):
    """A constrained resource that customers reserve time against."""

    __tablename__ = "resources"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    name = Column(String(255), nullable=False)
    hourly_rate = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="SEK")
    max_participants = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=True)

    windows = relationship(
        "AvailabilityWindow",
        back_populates="resource",
        cascade="all, delete-orphan",
        order_by="(AvailabilityWindow.day_of_week, AvailabilityWindow.start_time)",
    )

    __table_args__ = (
        CheckConstraint("max_participants >= 1", name="ck_resources_max_participants"),
    )

    def __repr__(self) -> str:
        return f"<Resource {self.id} {self.name!r}>"


class AvailabilityWindow(Base):
    """One recurring weekly window (day_of_week: 0=Monday .. 6=Sunday)."""

    __tablename__ = "availability_windows"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    resource_id = Column(String(26), ForeignKey("resources.id"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    resource = relationship("Resource", back_populates="windows")

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_windows_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_windows_time_order"),
        Index("ix_windows_resource_day", "resource_id", "day_of_week"),
    )


class BlockedRange(Base):
    """A date (or part of one) on which the resource is unavailable."""

    __tablename__ = "blocked_ranges"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    resource_id = Column(String(26), ForeignKey("resources.id"), nullable=False)
    date = Column(Date, nullable=False)
    is_all_day = Column(Boolean, nullable=False, default=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "is_all_day OR "
            "(start_time IS NOT NULL AND end_time IS NOT NULL AND start_time < end_time)",
            name="ck_blocked_ranges_bounds",
        ),
        Index("ix_blocked_ranges_resource_date", "resource_id", "date"),
    )


class ExtraSlot(Base):
    """A one-off window published by an admin for a single date."""

    __tablename__ = "extra_slots"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    resource_id = Column(String(26), ForeignKey("resources.id"), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_extra_slots_time_order"),
        Index("ix_extra_slots_resource_date", "resource_id", "date"),
    )
