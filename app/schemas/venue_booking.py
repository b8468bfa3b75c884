"""
Venue booking schemas
"""

from pydantic import Field
from typing import Any, Dict, Literal, Optional
from uuid import UUID
from datetime import date, datetime
from decimal import Decimal

from app.schemas.base import BaseSchema, CamelRequestSchema, IDSchema, TimestampSchema
from app.models.payment import PaymentMethod, PaymentStatus
from app.models.venue_booking import VenueBookingStatus


class VenueBookingCreate(CamelRequestSchema):
    """
    Booking request; services maps catering, decoration, photography and
    music to a tier label such as "standard"
    """
    event_name: str = Field(..., alias="eventName", min_length=1, max_length=255)
    event_description: Optional[str] = Field(None, alias="eventDescription")
    event_category: str = Field(..., alias="eventCategory", min_length=1, max_length=100)
    event_type: Literal["public", "private"] = Field("private", alias="eventType")
    event_image_url: Optional[str] = Field(None, alias="eventImageUrl", max_length=500)
    start_date: str = Field(..., alias="startDate")
    end_date: str = Field(..., alias="endDate")
    guests: int
    services: Dict[str, Any]
    payment_method: PaymentMethod = Field(PaymentMethod.CREDIT_CARD, alias="paymentMethod")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "eventName": "Annual Gala",
                "eventCategory": "corporate",
                "eventType": "private",
                "startDate": "2025-01-01",
                "endDate": "2025-01-03",
                "guests": 120,
                "services": {
                    "catering": "standard",
                    "decoration": "standard",
                    "photography": "standard",
                    "music": "standard"
                }
            }
        }
    }


class BookingEventSummary(BaseSchema):
    id: UUID
    title: str
    category: str
    date: datetime
    is_public: bool


class BookingVenueSummary(BaseSchema):
    id: UUID
    name: str
    location: str


class BookingPaymentSummary(BaseSchema):
    id: UUID
    amount: Decimal
    currency: str
    status: PaymentStatus
    payment_method: PaymentMethod
    gateway_reference: Optional[str] = None
    processed_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None


class VenueBookingResponse(IDSchema, TimestampSchema):
    venue_id: UUID
    user_id: UUID
    event_id: Optional[UUID] = None
    start_date: date
    end_date: date
    guests: int
    status: VenueBookingStatus
    catering_cost: Decimal
    decoration_cost: Decimal
    photography_cost: Decimal
    music_cost: Decimal
    total_cost: Decimal
    event: Optional[BookingEventSummary] = None
    venue: Optional[BookingVenueSummary] = None
    payment: Optional[BookingPaymentSummary] = None
