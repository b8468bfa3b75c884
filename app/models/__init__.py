"""
Database models
"""

from app.models.user import User, UserRole
from app.models.venue import Venue
from app.models.event import Event
from app.models.venue_booking import VenueBooking, VenueBookingStatus
from app.models.ticket_booking import TicketBooking, TicketBookingStatus
from app.models.payment import Payment, PaymentStatus, PaymentMethod

__all__ = [
    "User",
    "UserRole",
    "Venue",
    "Event",
    "VenueBooking",
    "VenueBookingStatus",
    "TicketBooking",
    "TicketBookingStatus",
    "Payment",
    "PaymentStatus",
    "PaymentMethod"
]
