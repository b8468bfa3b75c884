"""
Venue booking orchestration
Prices a booking, checks availability, charges the customer and creates the
event, booking and payment records as one unit
"""

import logging
from dataclasses import dataclass
from datetime import datetime, time, timezone
from decimal import Decimal
from typing import Any, List, Mapping, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import settings
from app.core.database import db_manager
from app.core.exceptions import (
    ConflictError,
    InvalidCostError,
    NotFoundError,
    PersistenceError,
    ValidationError,
    VenueNotFoundError,
    VenueUnavailableError,
    VenuelyException,
)
from app.core.metrics import metrics_collector
from app.models.event import Event
from app.models.payment import Payment, PaymentMethod, PaymentStatus
from app.models.venue import Venue
from app.models.venue_booking import VenueBooking, VenueBookingStatus
from app.services.payment_service import PaymentGateway, PaymentResult
from app.services.pricing import ServiceCosts, ServiceSelection
from app.services.venue_service import DateLike, VenueService, booking_days, validate_date_range

logger = logging.getLogger(__name__)

# Name of the PostgreSQL exclusion constraint added by migrations/add_booking_constraints.py
OVERLAP_CONSTRAINT = "excl_venue_bookings_no_overlap"


@dataclass(frozen=True)
class EventDetails:
    name: str
    category: str
    description: Optional[str] = None
    is_public: bool = False
    image_url: Optional[str] = None


@dataclass(frozen=True)
class BookingQuote:
    days: int
    price_per_day: Decimal
    venue_cost: Decimal
    services: ServiceCosts

    @property
    def total(self) -> Decimal:
        return self.venue_cost + self.services.total


def quote_booking(price_per_day: Decimal, days: int, selection: ServiceSelection) -> BookingQuote:
    """
    Price a booking: days * price_per_day plus the four service costs
    """
    price = Decimal(str(price_per_day))
    quote = BookingQuote(
        days=days,
        price_per_day=price,
        venue_cost=price * days,
        services=selection.costs(),
    )
    if not quote.total.is_finite() or quote.total <= 0:
        raise InvalidCostError()
    return quote


class VenueBookingService:
    """
    Venue booking lifecycle: create, list, get, cancel
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    async def create_booking(
        self,
        db: AsyncSession,
        gateway: PaymentGateway,
        *,
        venue_id: UUID,
        user_id: UUID,
        start_date: DateLike,
        end_date: DateLike,
        guests: int,
        services: Mapping[str, Any],
        event_details: EventDetails,
        payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD
    ) -> VenueBooking:
        """
        Book a venue for an inclusive date range.

        Validation, pricing and the venue lookup happen before anything is
        written. The availability check, the charge and the inserts then run
        in one transaction that first writes the venue row, so two requests
        for overlapping ranges cannot both succeed. A charge that was taken
        is refunded if the transaction does not commit.
        """
        venue = await db.get(Venue, venue_id)
        if not venue:
            raise VenueNotFoundError(venue_id)

        selection = ServiceSelection.from_mapping(services)
        start, end = validate_date_range(start_date, end_date)
        days = booking_days(start_date, end_date)
        quote = quote_booking(venue.price_per_day, days, selection)

        if guests is None or guests <= 0:
            raise ValidationError("guests must be a positive number", field="guests")
        if guests > venue.capacity:
            raise ValidationError(
                f"guests ({guests}) exceeds venue capacity ({venue.capacity})",
                field="guests"
            )

        self.logger.info(
            f"Booking venue {venue_id} for user {user_id}: {start}..{end}, "
            f"{days} days, total {quote.total}"
        )

        charge: Optional[PaymentResult] = None
        async with metrics_collector.track_booking_operation("venue_booking"):
            try:
                async with db_manager.transaction(db):
                    # Writing the venue row serializes bookings of one venue on every dialect;
                    # it must come before the availability check
                    await db.execute(
                        update(Venue)
                        .where(Venue.id == venue_id)
                        .values(updated_at=func.now())
                        .execution_options(synchronize_session=False)
                    )

                    if not await VenueService.is_available(db, venue_id, start, end):
                        raise VenueUnavailableError(venue_id, start, end)

                    charge = await gateway.charge(
                        quote.total,
                        currency=settings.PAYMENT_CURRENCY,
                        metadata={"venue_id": str(venue_id), "user_id": str(user_id)}
                    )

                    event = Event(
                        title=event_details.name,
                        description=event_details.description or f"Event hosted at {venue.name}",
                        category=event_details.category,
                        date=datetime.combine(start, time.min, tzinfo=timezone.utc),
                        is_public=event_details.is_public,
                        image_url=event_details.image_url,
                        organizer_id=user_id,
                        venue_id=venue_id,
                        ticket_prices=[],
                    )
                    db.add(event)
                    await db.flush()

                    booking = VenueBooking(
                        venue_id=venue_id,
                        user_id=user_id,
                        event_id=event.id,
                        start_date=start,
                        end_date=end,
                        guests=guests,
                        status=VenueBookingStatus.CONFIRMED,
                        catering_cost=quote.services.catering,
                        decoration_cost=quote.services.decoration,
                        photography_cost=quote.services.photography,
                        music_cost=quote.services.music,
                        total_cost=quote.total,
                    )
                    db.add(booking)
                    await db.flush()

                    db.add(Payment(
                        user_id=user_id,
                        venue_booking_id=booking.id,
                        amount=quote.total,
                        currency=charge.currency.upper(),
                        status=PaymentStatus.COMPLETED,
                        payment_method=payment_method,
                        gateway_reference=charge.reference,
                        processed_at=datetime.now(timezone.utc),
                    ))
                    await db.flush()
            except VenuelyException:
                await self._refund_quietly(gateway, charge)
                raise
            except IntegrityError as e:
                await self._refund_quietly(gateway, charge)
                if OVERLAP_CONSTRAINT in str(e.orig):
                    raise VenueUnavailableError(venue_id, start, end)
                raise PersistenceError("Could not create booking")
            except SQLAlchemyError:
                await self._refund_quietly(gateway, charge)
                raise PersistenceError("Could not create booking")
            except Exception:
                await self._refund_quietly(gateway, charge)
                raise

        self.logger.info(f"Venue booking confirmed: {booking.id} (payment {charge.reference})")
        return await self.get_booking(db, booking.id, user_id)

    async def _refund_quietly(self, gateway: PaymentGateway, charge: Optional[PaymentResult]) -> None:
        if charge is None:
            return
        try:
            await gateway.refund(charge.reference)
            self.logger.warning(f"Refunded charge {charge.reference} after failed booking")
        except Exception as e:
            self.logger.error(f"Refund of {charge.reference} failed, needs manual follow-up: {e}")

    async def get_booking(self, db: AsyncSession, booking_id: UUID, user_id: UUID) -> VenueBooking:
        stmt = (
            select(VenueBooking)
            .options(
                selectinload(VenueBooking.event),
                selectinload(VenueBooking.venue),
                selectinload(VenueBooking.payment),
            )
            .where(VenueBooking.id == booking_id, VenueBooking.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        booking = (await db.execute(stmt)).scalar_one_or_none()
        if not booking:
            raise NotFoundError("Venue booking", booking_id)
        return booking

    async def list_user_bookings(
        self,
        db: AsyncSession,
        user_id: UUID,
        status: Optional[VenueBookingStatus] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[VenueBooking]:
        stmt = (
            select(VenueBooking)
            .options(
                selectinload(VenueBooking.event),
                selectinload(VenueBooking.venue),
                selectinload(VenueBooking.payment),
            )
            .where(VenueBooking.user_id == user_id)
        )
        if status:
            stmt = stmt.where(VenueBooking.status == status)
        stmt = stmt.order_by(VenueBooking.created_at.desc(), VenueBooking.id).offset(skip).limit(limit)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def cancel_booking(
        self,
        db: AsyncSession,
        gateway: PaymentGateway,
        booking_id: UUID,
        user_id: UUID
    ) -> VenueBooking:
        """
        Cancel a booking, refund its payment and free the date range
        """
        async with db_manager.transaction(db):
            # Conditional write: of two concurrent cancels only one matches a live row
            canceled = await db.execute(
                update(VenueBooking)
                .where(
                    VenueBooking.id == booking_id,
                    VenueBooking.user_id == user_id,
                    VenueBooking.status != VenueBookingStatus.CANCELED
                )
                .values(status=VenueBookingStatus.CANCELED)
                .execution_options(synchronize_session=False)
            )

            stmt = (
                select(VenueBooking)
                .options(selectinload(VenueBooking.payment))
                .where(VenueBooking.id == booking_id, VenueBooking.user_id == user_id)
                .execution_options(populate_existing=True)
            )
            booking = (await db.execute(stmt)).scalar_one_or_none()
            if not booking:
                raise NotFoundError("Venue booking", booking_id)

            if canceled.rowcount == 0:
                raise ConflictError(
                    "Booking is already canceled",
                    details={"booking_id": str(booking_id)}
                )

            payment = booking.payment
            if payment and payment.status == PaymentStatus.COMPLETED:
                await gateway.refund(payment.gateway_reference)
                payment.status = PaymentStatus.REFUNDED
                payment.refunded_at = datetime.now(timezone.utc)

        self.logger.info(f"Venue booking canceled: {booking_id}")
        return await self.get_booking(db, booking_id, user_id)


venue_booking_service = VenueBookingService()
