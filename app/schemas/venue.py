"""
Venue schemas for request/response models
"""

from typing import Optional, List
from datetime import date
from decimal import Decimal
from pydantic import BaseModel, Field
import uuid

from app.schemas.base import BaseSchema, IDSchema, TimestampSchema


class VenueBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=500)
    capacity: int = Field(..., gt=0)
    price_per_day: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)


class VenueCreate(VenueBase):
    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Harbour Hall",
                "location": "12 Quay Street, Auckland",
                "capacity": 250,
                "price_per_day": "1200.00",
                "description": "Waterfront hall with a terrace"
            }
        }
    }


class VenueUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, min_length=1, max_length=500)
    capacity: Optional[int] = Field(None, gt=0)
    price_per_day: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)


class VenueResponse(IDSchema, TimestampSchema):
    name: str
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    capacity: int
    price_per_day: Decimal
    description: Optional[str] = None
    image_url: Optional[str] = None


class VenueSearchItem(VenueResponse):
    is_available: bool = True
    distance_km: Optional[float] = None


class SearchPagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(..., serialization_alias="totalPages")


class VenueSearchResult(BaseModel):
    venues: List[VenueSearchItem]
    pagination: SearchPagination


class AvailabilityResponse(BaseSchema):
    venue_id: uuid.UUID
    start_date: date
    end_date: date
    is_available: bool
