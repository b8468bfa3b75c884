"""
Event model
"""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Boolean, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.models.base import BaseModel


class Event(BaseModel):
    """
    Event hosted by an organizer, optionally at a venue

    ticket_prices holds a list of {"seat_type", "price", "available_seats"}.
    Reassign the list when changing a tier so the change is flushed.
    """
    __tablename__ = "events"

    title = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    category = Column(String(100), nullable=False, index=True)
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    is_public = Column(Boolean, default=True, nullable=False, index=True)
    image_url = Column(String(500))
    organizer_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    venue_id = Column(Uuid(as_uuid=True), ForeignKey("venues.id", ondelete="SET NULL"), nullable=True, index=True)
    ticket_prices = Column(JSON().with_variant(JSONB, "postgresql"), default=list, nullable=False)

    # Relationships
    organizer = relationship("User", back_populates="events_organized")
    venue = relationship("Venue", back_populates="events")
    venue_booking = relationship("VenueBooking", back_populates="event", uselist=False)
    ticket_bookings = relationship("TicketBooking", back_populates="event", cascade="all, delete-orphan")

    def find_ticket_tier(self, seat_type: str):
        for tier in self.ticket_prices or []:
            if tier.get("seat_type") == seat_type:
                return tier
        return None

    def __repr__(self):
        return f"<Event(id={self.id}, title={self.title}, date={self.date}, public={self.is_public})>"
