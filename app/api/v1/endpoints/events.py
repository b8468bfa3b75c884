"""
Event management and ticket booking endpoints
"""

from typing import Any, List
from uuid import UUID
import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.security import get_current_user, require_admin, require_roles, require_user
from app.models.user import User, UserRole
from app.schemas.event import EventCreate, EventResponse, EventUpdate
from app.schemas.response import MessageResponse
from app.schemas.ticket_booking import TicketBookingCreate, TicketBookingResponse
from app.services.event_service import EventService
from app.services.ticket_booking_service import TicketBookingService

router = APIRouter()
logger = logging.getLogger(__name__)

require_member = require_roles(UserRole.ADMIN, UserRole.USER)


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_in: EventCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_user)
) -> Any:
    """
    Create an event organized by the current user
    """
    return await EventService.create_event(db, current_user.id, event_in.model_dump())


@router.get("/", response_model=List[EventResponse])
async def get_events(
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100)
) -> Any:
    """
    Get all events
    """
    return await EventService.list_events(db, skip=skip, limit=limit)


@router.get("/public", response_model=List[EventResponse])
async def get_public_events(
    db: AsyncSession = Depends(get_session),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100)
) -> Any:
    """
    Get public events
    """
    return await EventService.list_public_events(db, skip=skip, limit=limit)


@router.get("/public/upcoming", response_model=List[EventResponse])
async def get_upcoming_public_events(
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_user),
    limit: int = Query(None, ge=1, le=50)
) -> Any:
    """
    Get the next few public events
    """
    return await EventService.list_upcoming_public_events(db, limit=limit)


@router.get("/organizer/{organizer_id}", response_model=List[EventResponse])
async def get_events_by_organizer(
    organizer_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_member)
) -> Any:
    return await EventService.list_by_organizer(db, organizer_id)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await EventService.get_event(db, event_id)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: UUID,
    event_in: EventUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user)
) -> Any:
    """
    Update an event (organizer or admin)
    """
    return await EventService.update_event(
        db, event_id, current_user, event_in.model_dump(exclude_unset=True)
    )


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin)
) -> Any:
    """
    Delete an event (admin only)
    """
    await EventService.delete_event(db, event_id)
    return MessageResponse(message="Event deleted successfully")


@router.post("/{event_id}/tickets", response_model=TicketBookingResponse, status_code=status.HTTP_201_CREATED)
async def book_tickets(
    event_id: UUID,
    booking_in: TicketBookingCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user)
) -> Any:
    """
    Book tickets of one seat type; payment stays pending until settled
    """
    return await TicketBookingService.book_tickets(
        db,
        current_user.id,
        event_id,
        booking_in.seat_type,
        booking_in.ticket_count,
        booking_in.payment_method,
    )
