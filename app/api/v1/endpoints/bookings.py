"""
Venue booking management endpoints
"""

from typing import Any, List, Optional
from uuid import UUID
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.security import get_current_user
from app.models.user import User
from app.models.venue_booking import VenueBookingStatus
from app.schemas.venue_booking import VenueBookingResponse
from app.services.payment_service import PaymentGateway, get_payment_gateway
from app.services.venue_booking_service import venue_booking_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=List[VenueBookingResponse])
async def get_user_bookings(
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    status: Optional[VenueBookingStatus] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100)
) -> Any:
    """
    Get the current user's venue bookings, newest first
    """
    return await venue_booking_service.list_user_bookings(
        db, current_user.id, status=status, skip=skip, limit=limit
    )


@router.get("/{booking_id}", response_model=VenueBookingResponse)
async def get_booking(
    booking_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user)
) -> Any:
    """
    Get one of the current user's venue bookings
    """
    return await venue_booking_service.get_booking(db, booking_id, current_user.id)


@router.post("/{booking_id}/cancel", response_model=VenueBookingResponse)
async def cancel_booking(
    booking_id: UUID,
    db: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    current_user: User = Depends(get_current_user)
) -> Any:
    """
    Cancel a booking and refund its payment
    """
    user_id = current_user.id
    booking = await venue_booking_service.cancel_booking(db, gateway, booking_id, user_id)
    logger.info(f"User {user_id} canceled venue booking {booking_id}")
    return booking
