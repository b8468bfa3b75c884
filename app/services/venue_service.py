"""
Venue catalogue, availability checks and venue search
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Set, Union
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.database import db_manager
from app.core.exceptions import (
    ConflictError,
    ExternalServiceError,
    GeocodeError,
    InvalidDateError,
    ValidationError,
    VenueNotFoundError,
)
from app.models.venue import Venue
from app.models.venue_booking import VenueBooking, VenueBookingStatus
from app.services.geo import BoundingBox, Coordinates, bounding_box, haversine_km
from app.services.geocoding_service import Geocoder

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]

UPDATABLE_FIELDS = ("name", "location", "capacity", "price_per_day", "description", "image_url")


def parse_booking_date(value: DateLike, field: str) -> date:
    """
    Coerce a date, datetime or ISO-8601 string into a calendar date.

    Strings must be a whole ISO date or datetime; trailing text is rejected.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
    raise InvalidDateError(f"Invalid date for {field}: {value!r}", field=field)


def validate_date_range(start_date: DateLike, end_date: DateLike) -> tuple[date, date]:
    start = parse_booking_date(start_date, "start_date")
    end = parse_booking_date(end_date, "end_date")
    if start > end:
        raise InvalidDateError("start_date must be on or before end_date", field="end_date")
    return start, end


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def booking_days(start_date: DateLike, end_date: DateLike) -> int:
    """
    Number of billable days, counting both boundary days.

    ceil((end - start) / 1 day) + 1, so a partial trailing day counts as a day.
    """
    if isinstance(start_date, datetime) and isinstance(end_date, datetime):
        elapsed = (_as_utc(end_date) - _as_utc(start_date)).total_seconds() / 86400
        return math.ceil(elapsed) + 1
    start, end = validate_date_range(start_date, end_date)
    return (end - start).days + 1


def _overlap_condition(start: date, end: date):
    # Closed intervals: a booking ending the day another starts still conflicts
    return and_(
        VenueBooking.start_date <= end,
        VenueBooking.end_date >= start,
        VenueBooking.status != VenueBookingStatus.CANCELED,
    )


def _longitude_condition(box: BoundingBox):
    """Longitude range, split in two when it crosses the antimeridian"""
    if box.min_longitude < -180:
        return or_(
            Venue.longitude >= box.min_longitude + 360,
            Venue.longitude <= box.max_longitude,
        )
    if box.max_longitude > 180:
        return or_(
            Venue.longitude >= box.min_longitude,
            Venue.longitude <= box.max_longitude - 360,
        )
    return Venue.longitude.between(box.min_longitude, box.max_longitude)


@dataclass
class VenueSearchFilters:
    budget: Optional[Decimal] = None
    capacity: Optional[int] = None
    location: Optional[str] = None
    radius: Optional[float] = None
    start_date: Optional[DateLike] = None
    end_date: Optional[DateLike] = None

    def validate(self) -> None:
        if self.budget is not None and self.budget <= 0:
            raise ValidationError("budget must be positive", field="budget")
        if self.capacity is not None and self.capacity <= 0:
            raise ValidationError("capacity must be positive", field="capacity")
        if self.radius is not None and self.radius <= 0:
            raise ValidationError("radius must be positive", field="radius")
        if (self.start_date is None) != (self.end_date is None):
            raise InvalidDateError("start_date and end_date must be given together", field="start_date")

    @property
    def has_window(self) -> bool:
        return self.start_date is not None and self.end_date is not None


class VenueService:
    """
    Venue operations; every method takes the session it should use
    """

    # Catalogue

    @staticmethod
    async def create_venue(db: AsyncSession, geocoder: Geocoder, data: Dict[str, Any]) -> Venue:
        coordinates = await VenueService._try_geocode(geocoder, data["location"])

        venue = Venue(
            name=data["name"],
            location=data["location"],
            capacity=data["capacity"],
            price_per_day=data["price_per_day"],
            description=data.get("description"),
            image_url=data.get("image_url"),
            latitude=coordinates.latitude if coordinates else None,
            longitude=coordinates.longitude if coordinates else None,
        )
        async with db_manager.transaction(db):
            db.add(venue)
        await db.refresh(venue)

        logger.info(f"Venue created: {venue.id} ({venue.name})")
        return venue

    @staticmethod
    async def list_venues(db: AsyncSession, skip: int = 0, limit: int = 100) -> List[Venue]:
        stmt = select(Venue).order_by(Venue.name, Venue.id).offset(skip).limit(limit)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_venue(db: AsyncSession, venue_id: UUID) -> Venue:
        venue = await db.get(Venue, venue_id)
        if not venue:
            raise VenueNotFoundError(venue_id)
        return venue

    @staticmethod
    async def update_venue(
        db: AsyncSession,
        geocoder: Geocoder,
        venue_id: UUID,
        data: Dict[str, Any]
    ) -> Venue:
        venue = await VenueService.get_venue(db, venue_id)

        changes = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS and v is not None}
        relocated = "location" in changes and changes["location"] != venue.location
        coordinates = await VenueService._try_geocode(geocoder, changes["location"]) if relocated else None

        async with db_manager.transaction(db):
            for key, value in changes.items():
                setattr(venue, key, value)
            if relocated:
                venue.latitude = coordinates.latitude if coordinates else None
                venue.longitude = coordinates.longitude if coordinates else None
        await db.refresh(venue)

        logger.info(f"Venue updated: {venue.id} fields={sorted(changes)}")
        return venue

    @staticmethod
    async def delete_venue(db: AsyncSession, venue_id: UUID) -> None:
        venue = await VenueService.get_venue(db, venue_id)

        booking_count = await db.scalar(
            select(func.count(VenueBooking.id)).where(
                VenueBooking.venue_id == venue.id,
                VenueBooking.status != VenueBookingStatus.CANCELED
            )
        )
        if booking_count:
            raise ConflictError(
                "Venue has bookings and cannot be deleted",
                details={"venue_id": str(venue.id), "bookings": booking_count}
            )

        async with db_manager.transaction(db):
            await db.delete(venue)
        logger.info(f"Venue deleted: {venue_id}")

    @staticmethod
    async def _try_geocode(geocoder: Geocoder, location: str) -> Optional[Coordinates]:
        try:
            coordinates = await geocoder.geocode(location)
        except ExternalServiceError as e:
            logger.warning(f"Geocoding failed for '{location}', storing venue without coordinates: {e}")
            return None
        if coordinates is None:
            logger.warning(f"No coordinates for '{location}', storing venue without coordinates")
        return coordinates

    # Availability

    @staticmethod
    async def find_overlapping_bookings(
        db: AsyncSession,
        venue_id: UUID,
        start_date: DateLike,
        end_date: DateLike
    ) -> List[VenueBooking]:
        start, end = validate_date_range(start_date, end_date)
        stmt = select(VenueBooking).where(
            VenueBooking.venue_id == venue_id,
            _overlap_condition(start, end)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def is_available(
        db: AsyncSession,
        venue_id: UUID,
        start_date: DateLike,
        end_date: DateLike
    ) -> bool:
        """
        True when no live booking of the venue overlaps [start_date, end_date]
        """
        overlapping = await VenueService.find_overlapping_bookings(db, venue_id, start_date, end_date)
        logger.debug(
            f"Availability for venue {venue_id} {start_date}..{end_date}: "
            f"{len(overlapping)} overlapping bookings"
        )
        return not overlapping

    @staticmethod
    async def unavailable_venue_ids(
        db: AsyncSession,
        venue_ids: Iterable[UUID],
        start_date: DateLike,
        end_date: DateLike
    ) -> Set[UUID]:
        """Batched form of is_available for a page of search results"""
        ids = list(venue_ids)
        if not ids:
            return set()
        start, end = validate_date_range(start_date, end_date)
        stmt = (
            select(VenueBooking.venue_id)
            .where(VenueBooking.venue_id.in_(ids), _overlap_condition(start, end))
            .distinct()
        )
        result = await db.execute(stmt)
        return set(result.scalars().all())

    # Search

    @staticmethod
    async def search_venues(
        db: AsyncSession,
        geocoder: Geocoder,
        filters: VenueSearchFilters,
        page: int = 1,
        limit: int = 10
    ) -> Dict[str, Any]:
        """
        Filter venues by budget, capacity, distance and availability.

        Location searches narrow candidates with a bounding box in SQL, keep
        only venues within the true great-circle radius, and paginate that
        final set. Results are ordered by name, then id.
        """
        if page < 1:
            raise ValidationError("page must be at least 1", field="page")
        if limit < 1 or limit > settings.SEARCH_MAX_LIMIT:
            raise ValidationError(f"limit must be between 1 and {settings.SEARCH_MAX_LIMIT}", field="limit")
        filters.validate()

        conditions = []
        if filters.budget is not None:
            conditions.append(Venue.price_per_day <= filters.budget)
        if filters.capacity is not None:
            conditions.append(Venue.capacity >= filters.capacity)

        window = validate_date_range(filters.start_date, filters.end_date) if filters.has_window else None

        center: Optional[Coordinates] = None
        radius = filters.radius or settings.SEARCH_DEFAULT_RADIUS_KM
        if filters.location:
            center = await geocoder.geocode(filters.location)
            if center is None:
                raise GeocodeError(filters.location)

        offset = (page - 1) * limit
        distances: Dict[UUID, float] = {}

        if center is not None:
            box = bounding_box(center, radius)
            conditions.append(Venue.latitude.between(box.min_latitude, box.max_latitude))
            conditions.append(_longitude_condition(box))

            stmt = select(Venue).where(*conditions).order_by(Venue.name, Venue.id)
            candidates = (await db.execute(stmt)).scalars().all()

            matches = []
            for venue in candidates:
                distance = haversine_km(center, Coordinates(venue.latitude, venue.longitude))
                if distance <= radius:
                    distances[venue.id] = distance
                    matches.append(venue)

            total = len(matches)
            venues = matches[offset:offset + limit]
        else:
            total = await db.scalar(select(func.count(Venue.id)).where(*conditions)) or 0
            stmt = (
                select(Venue)
                .where(*conditions)
                .order_by(Venue.name, Venue.id)
                .offset(offset)
                .limit(limit)
            )
            venues = list((await db.execute(stmt)).scalars().all())

        unavailable: Set[UUID] = set()
        if window is not None:
            unavailable = await VenueService.unavailable_venue_ids(db, [v.id for v in venues], *window)

        results = []
        for venue in venues:
            item = VenueService.venue_to_dict(venue)
            item["is_available"] = venue.id not in unavailable
            item["distance_km"] = round(distances[venue.id], 3) if venue.id in distances else None
            results.append(item)

        logger.info(
            f"Venue search returned {len(results)} of {total} "
            f"(page={page}, limit={limit}, location={'yes' if center else 'no'})"
        )

        return {
            "venues": results,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit) if total else 0,
            },
        }

    @staticmethod
    def venue_to_dict(venue: Venue) -> Dict[str, Any]:
        return {
            "id": venue.id,
            "name": venue.name,
            "location": venue.location,
            "latitude": venue.latitude,
            "longitude": venue.longitude,
            "capacity": venue.capacity,
            "price_per_day": venue.price_per_day,
            "description": venue.description,
            "image_url": venue.image_url,
            "created_at": venue.created_at,
            "updated_at": venue.updated_at,
        }


venue_service = VenueService()
