"""
Event schemas
"""

from pydantic import Field, field_validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from app.schemas.base import BaseSchema, IDSchema, TimestampSchema


class TicketTier(BaseSchema):
    """Price and remaining seats for one seat type"""
    seat_type: str = Field(..., min_length=1, max_length=100)
    price: float = Field(..., ge=0)
    available_seats: int = Field(..., ge=0)


def _unique_seat_types(tiers):
    if tiers is not None:
        names = [t.seat_type for t in tiers]
        if len(names) != len(set(names)):
            raise ValueError('Duplicate seat types not allowed')
    return tiers


class EventBase(BaseSchema):
    """Base event schema"""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: str = Field(..., min_length=1, max_length=100)
    date: datetime
    is_public: bool = True
    image_url: Optional[str] = Field(None, max_length=500)


class EventCreate(EventBase):
    """Event creation schema"""
    venue_id: Optional[UUID] = None
    ticket_prices: List[TicketTier] = []

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Jazz Night",
                "category": "music",
                "date": "2025-10-15T20:00:00Z",
                "is_public": True,
                "ticket_prices": [
                    {"seat_type": "general", "price": 25.0, "available_seats": 200},
                    {"seat_type": "vip", "price": 80.0, "available_seats": 20}
                ]
            }
        }
    }

    @field_validator('ticket_prices')
    @classmethod
    def validate_unique_seat_types(cls, v):
        return _unique_seat_types(v)


class EventUpdate(BaseSchema):
    """Event update schema"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    date: Optional[datetime] = None
    is_public: Optional[bool] = None
    image_url: Optional[str] = Field(None, max_length=500)
    ticket_prices: Optional[List[TicketTier]] = None

    @field_validator('ticket_prices')
    @classmethod
    def validate_unique_seat_types(cls, v):
        return _unique_seat_types(v)


class EventResponse(EventBase, IDSchema, TimestampSchema):
    """Event response schema"""
    organizer_id: UUID
    venue_id: Optional[UUID] = None
    ticket_prices: List[TicketTier] = []
