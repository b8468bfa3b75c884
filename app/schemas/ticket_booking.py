"""
Ticket booking schemas
"""

from pydantic import Field
from uuid import UUID

from app.schemas.base import CamelRequestSchema, IDSchema, TimestampSchema
from app.schemas.venue_booking import BookingPaymentSummary
from app.models.payment import PaymentMethod
from app.models.ticket_booking import TicketBookingStatus


class TicketBookingCreate(CamelRequestSchema):
    seat_type: str = Field(..., alias="seatType", min_length=1, max_length=100)
    ticket_count: int = Field(..., alias="ticketCount", gt=0)
    payment_method: PaymentMethod = Field(PaymentMethod.CREDIT_CARD, alias="paymentMethod")


class TicketBookingResponse(IDSchema, TimestampSchema):
    user_id: UUID
    event_id: UUID
    seat_type: str
    ticket_count: int
    status: TicketBookingStatus
    payment: BookingPaymentSummary
