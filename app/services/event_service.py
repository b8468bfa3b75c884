"""
Event catalogue
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import settings
from app.core.database import db_manager
from app.core.exceptions import AuthorizationError, NotFoundError, VenueNotFoundError
from app.models.event import Event
from app.models.user import User, UserRole
from app.models.venue import Venue

logger = logging.getLogger(__name__)

EVENT_FIELDS = ("title", "description", "category", "date", "is_public", "image_url", "ticket_prices")


class EventService:

    @staticmethod
    def _select():
        return select(Event).options(selectinload(Event.venue))

    @staticmethod
    async def create_event(db: AsyncSession, organizer_id: UUID, data: Dict[str, Any]) -> Event:
        venue_id = data.get("venue_id")
        if venue_id is not None and not await db.get(Venue, venue_id):
            raise VenueNotFoundError(venue_id)

        event = Event(organizer_id=organizer_id, venue_id=venue_id)
        for key in EVENT_FIELDS:
            if data.get(key) is not None:
                setattr(event, key, data[key])

        async with db_manager.transaction(db):
            db.add(event)

        logger.info(f"Event created: {event.id} by {organizer_id}")
        return await EventService.get_event(db, event.id)

    @staticmethod
    async def list_events(db: AsyncSession, skip: int = 0, limit: int = 100) -> List[Event]:
        stmt = EventService._select().order_by(Event.date, Event.id).offset(skip).limit(limit)
        return list((await db.execute(stmt)).scalars().all())

    @staticmethod
    async def list_public_events(db: AsyncSession, skip: int = 0, limit: int = 100) -> List[Event]:
        stmt = (
            EventService._select()
            .where(Event.is_public.is_(True))
            .order_by(Event.date, Event.id)
            .offset(skip)
            .limit(limit)
        )
        return list((await db.execute(stmt)).scalars().all())

    @staticmethod
    async def list_upcoming_public_events(db: AsyncSession, limit: int = None) -> List[Event]:
        """Soonest public events that have not started yet"""
        stmt = (
            EventService._select()
            .where(Event.is_public.is_(True), Event.date >= datetime.now(timezone.utc))
            .order_by(Event.date, Event.id)
            .limit(limit or settings.UPCOMING_EVENTS_DEFAULT_LIMIT)
        )
        return list((await db.execute(stmt)).scalars().all())

    @staticmethod
    async def list_by_organizer(db: AsyncSession, organizer_id: UUID) -> List[Event]:
        stmt = (
            EventService._select()
            .where(Event.organizer_id == organizer_id)
            .order_by(Event.date, Event.id)
        )
        return list((await db.execute(stmt)).scalars().all())

    @staticmethod
    async def get_event(db: AsyncSession, event_id: UUID) -> Event:
        stmt = EventService._select().where(Event.id == event_id).execution_options(populate_existing=True)
        event = (await db.execute(stmt)).scalar_one_or_none()
        if not event:
            raise NotFoundError("Event", event_id)
        return event

    @staticmethod
    async def update_event(db: AsyncSession, event_id: UUID, current_user: User, data: Dict[str, Any]) -> Event:
        """
        Apply a partial update; only the organizer or an admin may change an event
        """
        event = await EventService.get_event(db, event_id)
        if event.organizer_id != current_user.id and current_user.role != UserRole.ADMIN:
            raise AuthorizationError("Only the organizer can update this event")

        changes = {k: v for k, v in data.items() if k in EVENT_FIELDS and v is not None}
        async with db_manager.transaction(db):
            for key, value in changes.items():
                setattr(event, key, value)

        logger.info(f"Event updated: {event_id} fields={sorted(changes)}")
        return await EventService.get_event(db, event_id)

    @staticmethod
    async def delete_event(db: AsyncSession, event_id: UUID) -> None:
        event = await EventService.get_event(db, event_id)
        async with db_manager.transaction(db):
            await db.delete(event)
        logger.info(f"Event deleted: {event_id}")
