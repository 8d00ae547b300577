from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from eventease.database import Base
from eventease.models.event import enum_column_type


class UserRole(str, Enum):
    ORGANIZER = "organizer"
    PARTICIPANT = "participant"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    role = Column(enum_column_type(UserRole, "user_role"), nullable=False, default=UserRole.PARTICIPANT)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    events_created = relationship("Event", back_populates="organizer", order_by="Event.date")
    events_attending = relationship(
        "Event",
        secondary="event_attendees",
        back_populates="attendees",
        order_by="Event.date",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<User {self.id}: {self.email}>"
