from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Text, ForeignKey, Boolean, JSON, Numeric,
    Table, UniqueConstraint, Enum as SAEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from eventease.database import Base


class EventStatus(str, Enum):
    """Lifecycle states. Only CANCELLED is ever set explicitly."""
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class LocationType(str, Enum):
    PHYSICAL = "physical"
    ONLINE = "online"


class EventCategory(str, Enum):
    CONFERENCE = "conference"
    WORKSHOP = "workshop"
    SEMINAR = "seminar"
    NETWORKING = "networking"
    OTHER = "other"


def enum_column_type(enum_cls, name: str) -> SAEnum:
    """Store enum values (not member names) as plain strings."""
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
    )


# One row per registration. The same row is the event's roster entry and the
# user's attending-list entry; ``id`` preserves join order.
event_attendees = Table(
    "event_attendees",
    Base.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("event_id", Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("joined_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
    UniqueConstraint("event_id", "user_id", name="uq_event_attendees_event_user"),
)


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(5), nullable=False)  # "HH:MM", 24-hour
    location = Column(String(255), nullable=False)
    location_type = Column(enum_column_type(LocationType, "location_type"), nullable=False, default=LocationType.PHYSICAL)
    category = Column(enum_column_type(EventCategory, "event_category"), nullable=False, index=True)

    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    max_attendees = Column(Integer, nullable=True)  # None means unlimited
    attendee_count = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    is_private = Column(Boolean, nullable=False, default=False)
    status = Column(enum_column_type(EventStatus, "event_status"), nullable=False, default=EventStatus.UPCOMING, index=True)
    registration_deadline = Column(Date, nullable=True)
    image = Column(String(512), nullable=True)  # Filename reference only
    additional_details = Column(JSON, nullable=False, default=dict)

    # Optimistic lock, bumped by SQLAlchemy on every UPDATE of this row
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    # Relationships
    organizer = relationship("User", back_populates="events_created")
    attendees = relationship(
        "User",
        secondary=event_attendees,
        back_populates="events_attending",
        order_by=event_attendees.c.id,
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def attendee_ids(self) -> list[int]:
        return [user.id for user in self.attendees]

    @property
    def is_full(self) -> bool:
        if not self.max_attendees:
            return False
        return (self.attendee_count or 0) >= self.max_attendees

    @property
    def spots_left(self):
        if not self.max_attendees:
            return None
        return max(self.max_attendees - (self.attendee_count or 0), 0)

    def __repr__(self):
        return f"<Event {self.id}: {self.title} ({self.status})>"
