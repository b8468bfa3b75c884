"""
Ticket booking model
"""

from sqlalchemy import Column, String, ForeignKey, Enum, Integer, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
import enum

from app.models.base import BaseModel


class TicketBookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELED = "CANCELED"


class TicketBooking(BaseModel):
    """
    Tickets of one seat type bought for an event
    """
    __tablename__ = "ticket_bookings"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_id = Column(Uuid(as_uuid=True), ForeignKey("payments.id"), nullable=True, unique=True)
    seat_type = Column(String(100), nullable=False)
    ticket_count = Column(Integer, nullable=False)
    status = Column(
        Enum(TicketBookingStatus),
        default=TicketBookingStatus.PENDING,
        nullable=False,
        index=True
    )

    # Relationships
    user = relationship("User", back_populates="ticket_bookings")
    event = relationship("Event", back_populates="ticket_bookings")
    payment = relationship("Payment", back_populates="ticket_booking")

    __table_args__ = (
        CheckConstraint("ticket_count > 0", name="chk_ticket_bookings_count_positive"),
    )

    def __repr__(self):
        return f"<TicketBooking(id={self.id}, event_id={self.event_id}, seat_type={self.seat_type}, count={self.ticket_count})>"
