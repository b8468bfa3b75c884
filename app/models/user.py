"""
User model
"""

from sqlalchemy import Column, String, Boolean, Enum
from sqlalchemy.orm import relationship
import enum

from app.models.base import BaseModel


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(BaseModel):
    """
    User model; bookings and events reference users, never own them
    """
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole),
        default=UserRole.USER,
        nullable=False
    )
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    venue_bookings = relationship("VenueBooking", back_populates="user")
    ticket_bookings = relationship("TicketBooking", back_populates="user")
    events_organized = relationship("Event", back_populates="organizer")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
