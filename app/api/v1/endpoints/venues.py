"""
Venue catalogue, search and booking endpoints
"""

from typing import Any, List, Optional
from decimal import Decimal
from uuid import UUID
import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.database import get_session
from app.core.security import RateLimiter, require_admin, require_user
from app.models.user import User
from app.schemas.response import MessageResponse
from app.schemas.venue import (
    AvailabilityResponse,
    VenueCreate,
    VenueResponse,
    VenueSearchResult,
    VenueUpdate,
)
from app.schemas.venue_booking import VenueBookingCreate, VenueBookingResponse
from app.services.geocoding_service import Geocoder, get_geocoder
from app.services.payment_service import PaymentGateway, get_payment_gateway
from app.services.venue_booking_service import EventDetails, venue_booking_service
from app.services.venue_service import VenueSearchFilters, validate_date_range, venue_service

router = APIRouter()
logger = logging.getLogger(__name__)

booking_rate_limit = RateLimiter("venue_booking", settings.RATE_LIMIT_BOOKING_PER_MINUTE)


@router.get("/", response_model=List[VenueResponse])
async def get_venues(
    db: AsyncSession = Depends(get_session),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500)
) -> Any:
    """
    Get list of all venues
    """
    return await venue_service.list_venues(db, skip=skip, limit=limit)


@router.get("/search", response_model=VenueSearchResult)
async def search_venues(
    db: AsyncSession = Depends(get_session),
    geocoder: Geocoder = Depends(get_geocoder),
    budget: Optional[Decimal] = Query(None, description="Maximum price per day"),
    capacity: Optional[int] = Query(None, description="Minimum capacity"),
    location: Optional[str] = Query(None, description="Free-text location to search around"),
    radius: Optional[float] = Query(None, description="Search radius in km"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    page: int = Query(1),
    limit: int = Query(settings.SEARCH_DEFAULT_LIMIT)
) -> Any:
    """
    Search venues by budget, capacity, distance and availability
    """
    filters = VenueSearchFilters(
        budget=budget,
        capacity=capacity,
        location=location,
        radius=radius,
        start_date=start_date,
        end_date=end_date,
    )
    return await venue_service.search_venues(db, geocoder, filters, page=page, limit=limit)


@router.get("/{venue_id}", response_model=VenueResponse)
async def get_venue(
    venue_id: UUID,
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Get a single venue
    """
    return await venue_service.get_venue(db, venue_id)


@router.get("/{venue_id}/availability", response_model=AvailabilityResponse)
async def get_venue_availability(
    venue_id: UUID,
    start_date: str = Query(..., alias="startDate"),
    end_date: str = Query(..., alias="endDate"),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Check whether a venue is free for an inclusive date range
    """
    await venue_service.get_venue(db, venue_id)
    start, end = validate_date_range(start_date, end_date)
    available = await venue_service.is_available(db, venue_id, start, end)
    return AvailabilityResponse(venue_id=venue_id, start_date=start, end_date=end, is_available=available)


@router.post("/", response_model=VenueResponse, status_code=status.HTTP_201_CREATED)
async def create_venue(
    venue_in: VenueCreate,
    db: AsyncSession = Depends(get_session),
    geocoder: Geocoder = Depends(get_geocoder),
    current_user: User = Depends(require_admin)
) -> Any:
    """
    Create a venue (admin only)
    """
    venue = await venue_service.create_venue(db, geocoder, venue_in.model_dump())
    logger.info(f"Admin {current_user.id} created venue {venue.id}")
    return venue


@router.put("/{venue_id}", response_model=VenueResponse)
async def update_venue(
    venue_id: UUID,
    venue_in: VenueUpdate,
    db: AsyncSession = Depends(get_session),
    geocoder: Geocoder = Depends(get_geocoder),
    current_user: User = Depends(require_admin)
) -> Any:
    """
    Update a venue (admin only)
    """
    return await venue_service.update_venue(db, geocoder, venue_id, venue_in.model_dump(exclude_unset=True))


@router.delete("/{venue_id}", response_model=MessageResponse)
async def delete_venue(
    venue_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin)
) -> Any:
    """
    Delete a venue without live bookings (admin only)
    """
    await venue_service.delete_venue(db, venue_id)
    return MessageResponse(message="Venue deleted successfully")


@router.post(
    "/{venue_id}/book",
    response_model=VenueBookingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(booking_rate_limit)]
)
async def book_venue(
    venue_id: UUID,
    booking_in: VenueBookingCreate,
    db: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    current_user: User = Depends(require_user)
) -> Any:
    """
    Book a venue for an event, charging venue days plus selected services
    """
    return await venue_booking_service.create_booking(
        db,
        gateway,
        venue_id=venue_id,
        user_id=current_user.id,
        start_date=booking_in.start_date,
        end_date=booking_in.end_date,
        guests=booking_in.guests,
        services=booking_in.services,
        event_details=EventDetails(
            name=booking_in.event_name,
            description=booking_in.event_description,
            category=booking_in.event_category,
            is_public=booking_in.event_type == "public",
            image_url=booking_in.event_image_url,
        ),
        payment_method=booking_in.payment_method,
    )
