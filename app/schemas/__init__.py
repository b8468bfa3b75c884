"""
Pydantic schemas for request and response validation
"""

from app.schemas.venue import (
    VenueCreate,
    VenueUpdate,
    VenueResponse,
    VenueSearchItem,
    VenueSearchResult,
    AvailabilityResponse
)
from app.schemas.venue_booking import (
    VenueBookingCreate,
    VenueBookingResponse
)
from app.schemas.event import (
    EventCreate,
    EventUpdate,
    EventResponse,
    TicketTier
)
from app.schemas.ticket_booking import (
    TicketBookingCreate,
    TicketBookingResponse
)
from app.schemas.response import (
    ErrorResponse,
    MessageResponse
)

__all__ = [
    "VenueCreate",
    "VenueUpdate",
    "VenueResponse",
    "VenueSearchItem",
    "VenueSearchResult",
    "AvailabilityResponse",
    "VenueBookingCreate",
    "VenueBookingResponse",
    "EventCreate",
    "EventUpdate",
    "EventResponse",
    "TicketTier",
    "TicketBookingCreate",
    "TicketBookingResponse",
    "ErrorResponse",
    "MessageResponse"
]
