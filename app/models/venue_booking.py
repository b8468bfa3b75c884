"""
Venue booking model
"""

from sqlalchemy import Column, ForeignKey, Enum, Numeric, Date, Integer, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
import enum

from app.models.base import BaseModel


class VenueBookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELED = "CANCELED"


class VenueBooking(BaseModel):
    """
    Booking of a venue for an inclusive date range

    Owns its derived event and payment; venue and user are only referenced.
    """
    __tablename__ = "venue_bookings"

    venue_id = Column(Uuid(as_uuid=True), ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id", ondelete="SET NULL"), nullable=True, unique=True)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False, index=True)
    guests = Column(Integer, nullable=False)
    status = Column(
        Enum(VenueBookingStatus),
        default=VenueBookingStatus.PENDING,
        nullable=False,
        index=True
    )

    # Services breakdown
    catering_cost = Column(Numeric(10, 2), default=0, nullable=False)
    decoration_cost = Column(Numeric(10, 2), default=0, nullable=False)
    photography_cost = Column(Numeric(10, 2), default=0, nullable=False)
    music_cost = Column(Numeric(10, 2), default=0, nullable=False)
    total_cost = Column(Numeric(12, 2), nullable=False)

    # Relationships
    venue = relationship("Venue", back_populates="bookings")
    user = relationship("User", back_populates="venue_bookings")
    event = relationship("Event", back_populates="venue_booking")
    payment = relationship(
        "Payment",
        back_populates="venue_booking",
        uselist=False,
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="chk_venue_bookings_date_order"),
        CheckConstraint("total_cost > 0", name="chk_venue_bookings_total_positive"),
        CheckConstraint("guests > 0", name="chk_venue_bookings_guests_positive"),
    )

    def __repr__(self):
        return (
            f"<VenueBooking(id={self.id}, venue_id={self.venue_id}, "
            f"{self.start_date}..{self.end_date}, status={self.status}, total={self.total_cost})>"
        )
