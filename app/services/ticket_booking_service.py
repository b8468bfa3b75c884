"""
Ticket booking for events with tiered ticket prices
"""

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import db_manager
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.event import Event
from app.models.payment import Payment, PaymentMethod, PaymentStatus
from app.models.ticket_booking import TicketBooking, TicketBookingStatus

logger = logging.getLogger(__name__)


class TicketBookingService:

    @staticmethod
    async def book_tickets(
        db: AsyncSession,
        user_id: UUID,
        event_id: UUID,
        seat_type: str,
        ticket_count: int,
        payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD
    ) -> TicketBooking:
        """
        Reserve tickets of one seat type.

        The event row is locked while the tier is checked and decremented, and
        the pending payment and booking are created in the same transaction.
        """
        if ticket_count is None or ticket_count <= 0:
            raise ValidationError("ticket_count must be a positive number", field="ticket_count")

        async with db_manager.transaction(db):
            # Writing the event row first serializes seat sales per event
            await db.execute(
                update(Event)
                .where(Event.id == event_id)
                .values(updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            stmt = (
                select(Event)
                .where(Event.id == event_id)
                .execution_options(populate_existing=True)
            )
            event = (await db.execute(stmt)).scalar_one_or_none()
            if not event:
                raise NotFoundError("Event", event_id)

            tier = event.find_ticket_tier(seat_type)
            if tier is None:
                raise ValidationError(f"Invalid seat type: {seat_type}", field="seat_type")

            available = int(tier.get("available_seats", 0))
            if available < ticket_count:
                raise ConflictError(
                    "Not enough seats available",
                    details={"seat_type": seat_type, "available_seats": available, "requested": ticket_count}
                )

            amount = Decimal(str(tier.get("price", 0))) * ticket_count

            # New list so the JSON column is marked dirty
            event.ticket_prices = [
                {**t, "available_seats": available - ticket_count} if t.get("seat_type") == seat_type else t
                for t in event.ticket_prices
            ]

            payment = Payment(
                user_id=user_id,
                amount=amount,
                status=PaymentStatus.PENDING,
                payment_method=payment_method,
            )
            db.add(payment)
            await db.flush()

            booking = TicketBooking(
                user_id=user_id,
                event_id=event_id,
                payment_id=payment.id,
                seat_type=seat_type,
                ticket_count=ticket_count,
                status=TicketBookingStatus.PENDING,
            )
            db.add(booking)
            await db.flush()

        logger.info(f"Ticket booking {booking.id}: {ticket_count} x {seat_type} for event {event_id}, amount {amount}")
        return await TicketBookingService.get_ticket_booking(db, booking.id, user_id)

    @staticmethod
    async def get_ticket_booking(db: AsyncSession, booking_id: UUID, user_id: UUID) -> TicketBooking:
        stmt = (
            select(TicketBooking)
            .options(selectinload(TicketBooking.payment), selectinload(TicketBooking.event))
            .where(TicketBooking.id == booking_id, TicketBooking.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        booking = (await db.execute(stmt)).scalar_one_or_none()
        if not booking:
            raise NotFoundError("Ticket booking", booking_id)
        return booking

