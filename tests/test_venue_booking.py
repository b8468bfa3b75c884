"""
Tests for the venue booking orchestrator: pricing, conflicts, payment and rollback
"""

import pytest
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    ConflictError,
    InvalidDateError,
    InvalidServicesError,
    NotFoundError,
    PaymentError,
    PersistenceError,
    ValidationError,
    VenueNotFoundError,
    VenueUnavailableError,
)
from app.core.metrics import metrics_collector
from app.models.event import Event
from app.models.payment import Payment, PaymentStatus
from app.models.venue_booking import VenueBooking, VenueBookingStatus
from app.services.venue_booking_service import EventDetails, OVERLAP_CONSTRAINT, venue_booking_service

from tests.conftest import RecordingGateway, create_venue

GALA = EventDetails(name="Annual Gala", category="corporate")


async def count_rows(db_session, model) -> int:
    return await db_session.scalar(select(func.count()).select_from(model))


async def book(db_session, gateway, venue_id, user_id, start, end, services, guests=50, details=GALA):
    return await venue_booking_service.create_booking(
        db_session,
        gateway,
        venue_id=venue_id,
        user_id=user_id,
        start_date=start,
        end_date=end,
        guests=guests,
        services=services,
        event_details=details,
    )


def fail_on_flush(monkeypatch, call_number, error):
    """Make the nth AsyncSession.flush raise the given error"""
    real_flush = AsyncSession.flush
    calls = {"count": 0}

    async def flaky_flush(self, objects=None):
        calls["count"] += 1
        if calls["count"] == call_number:
            raise error
        await real_flush(self, objects)

    monkeypatch.setattr(AsyncSession, "flush", flaky_flush)


class TestCreateBooking:

    @pytest.mark.asyncio
    async def test_three_days_with_standard_services(
        self, db_session, gateway, test_venue, test_user, standard_services
    ):
        booking = await book(
            db_session, gateway, test_venue.id, test_user.id, "2025-01-01", "2025-01-03", standard_services
        )

        assert booking.status == VenueBookingStatus.CONFIRMED
        assert booking.start_date == date(2025, 1, 1)
        assert booking.end_date == date(2025, 1, 3)
        assert booking.total_cost == Decimal("585.00")
        assert booking.catering_cost == Decimal("100.00")
        assert booking.decoration_cost == Decimal("50.00")
        assert booking.photography_cost == Decimal("75.00")
        assert booking.music_cost == Decimal("60.00")
        assert booking.guests == 50

        assert gateway.charges[0].amount == Decimal("585.00")
        assert booking.payment.status == PaymentStatus.COMPLETED
        assert booking.payment.amount == Decimal("585.00")
        assert booking.payment.gateway_reference == gateway.charges[0].reference

        assert booking.event.title == "Annual Gala"
        assert booking.event.organizer_id == test_user.id
        assert booking.event.venue_id == test_venue.id
        assert booking.event.date.date() == date(2025, 1, 1)
        assert booking.event.is_public is False
        assert booking.event.description == "Event hosted at Test Hall"
        assert booking.venue.name == "Test Hall"

    @pytest.mark.asyncio
    async def test_single_day_booking(self, db_session, gateway, test_venue, test_user):
        services = {"catering": "premium", "decoration": "none", "photography": "none", "music": "none"}

        booking = await book(
            db_session, gateway, test_venue.id, test_user.id, "2025-02-01", "2025-02-01", services
        )

        assert booking.total_cost == Decimal("300.00")

    @pytest.mark.asyncio
    async def test_public_event_details_are_kept(self, db_session, gateway, test_venue, test_user, standard_services):
        details = EventDetails(
            name="Open Day",
            category="community",
            description="Everyone welcome",
            is_public=True,
            image_url="https://img.test/open-day.png",
        )

        booking = await book(
            db_session, gateway, test_venue.id, test_user.id, "2025-03-01", "2025-03-01",
            standard_services, details=details
        )

        assert booking.event.is_public is True
        assert booking.event.description == "Everyone welcome"

    @pytest.mark.asyncio
    async def test_overlapping_booking_is_rejected_before_charging(
        self, db_session, gateway, test_venue, test_user, other_user, standard_services
    ):
        venue_id, other_id = test_venue.id, other_user.id
        await book(db_session, gateway, venue_id, test_user.id, "2025-01-02", "2025-01-04", standard_services)

        with pytest.raises(VenueUnavailableError) as exc_info:
            await book(db_session, gateway, venue_id, other_id, "2025-01-03", "2025-01-05", standard_services)

        assert exc_info.value.status_code == 409
        assert exc_info.value.details["venue_id"] == str(venue_id)
        assert len(gateway.charges) == 1
        assert gateway.refunds == []
        assert await count_rows(db_session, VenueBooking) == 1
        assert await count_rows(db_session, Event) == 1

    @pytest.mark.asyncio
    async def test_adjacent_booking_is_accepted(
        self, db_session, gateway, test_venue, test_user, standard_services
    ):
        venue_id, user_id = test_venue.id, test_user.id
        await book(db_session, gateway, venue_id, user_id, "2025-01-02", "2025-01-04", standard_services)

        booking = await book(db_session, gateway, venue_id, user_id, "2025-01-05", "2025-01-06", standard_services)

        assert booking.status == VenueBookingStatus.CONFIRMED
        assert await count_rows(db_session, VenueBooking) == 2

    @pytest.mark.asyncio
    async def test_payment_failure_leaves_nothing_behind(
        self, db_session, test_venue, test_user, standard_services
    ):
        venue_id, user_id = test_venue.id, test_user.id
        declined = RecordingGateway(fail=True)

        with pytest.raises(PaymentError) as exc_info:
            await book(db_session, declined, venue_id, user_id, "2025-01-01", "2025-01-03", standard_services)

        assert exc_info.value.status_code == 402
        assert await count_rows(db_session, Event) == 0
        assert await count_rows(db_session, VenueBooking) == 0
        assert await count_rows(db_session, Payment) == 0

    @pytest.mark.asyncio
    async def test_storage_failure_refunds_the_charge(
        self, db_session, gateway, test_venue, test_user, standard_services, monkeypatch
    ):
        venue_id, user_id = test_venue.id, test_user.id
        # Third flush writes the payment row
        fail_on_flush(monkeypatch, 3, OperationalError("INSERT INTO payments", {}, Exception("disk I/O error")))

        with pytest.raises(PersistenceError):
            await book(db_session, gateway, venue_id, user_id, "2025-01-01", "2025-01-03", standard_services)

        monkeypatch.undo()
        assert gateway.refunds == [gateway.charges[0].reference]
        assert await count_rows(db_session, Event) == 0
        assert await count_rows(db_session, VenueBooking) == 0
        assert await count_rows(db_session, Payment) == 0

    @pytest.mark.asyncio
    async def test_exclusion_constraint_violation_is_a_conflict(
        self, db_session, gateway, test_venue, test_user, standard_services, monkeypatch
    ):
        venue_id, user_id = test_venue.id, test_user.id
        violation = IntegrityError(
            "INSERT INTO venue_bookings",
            {},
            Exception(f'conflicting key value violates exclusion constraint "{OVERLAP_CONSTRAINT}"')
        )
        fail_on_flush(monkeypatch, 2, violation)

        with pytest.raises(VenueUnavailableError):
            await book(db_session, gateway, venue_id, user_id, "2025-01-01", "2025-01-03", standard_services)

        monkeypatch.undo()
        assert gateway.refunds == [gateway.charges[0].reference]
        assert await count_rows(db_session, VenueBooking) == 0

    @pytest.mark.asyncio
    async def test_other_integrity_errors_are_storage_failures(
        self, db_session, gateway, test_venue, test_user, standard_services, monkeypatch
    ):
        venue_id, user_id = test_venue.id, test_user.id
        fail_on_flush(monkeypatch, 1, IntegrityError("INSERT INTO events", {}, Exception("NOT NULL constraint failed")))

        with pytest.raises(PersistenceError):
            await book(db_session, gateway, venue_id, user_id, "2025-01-01", "2025-01-03", standard_services)

        assert len(gateway.refunds) == 1

    @pytest.mark.asyncio
    async def test_refund_failure_does_not_mask_the_error(
        self, db_session, test_venue, test_user, standard_services, monkeypatch
    ):
        class RefundFailingGateway(RecordingGateway):
            async def refund(self, reference):
                raise PaymentError("Refund processing error")

        venue_id, user_id = test_venue.id, test_user.id
        fail_on_flush(monkeypatch, 3, OperationalError("INSERT INTO payments", {}, Exception("disk I/O error")))

        with pytest.raises(PersistenceError):
            await book(
                db_session, RefundFailingGateway(), venue_id, user_id, "2025-01-01", "2025-01-03", standard_services
            )


class TestBookingValidation:

    @pytest.mark.asyncio
    async def test_unknown_venue(self, db_session, gateway, test_user, standard_services):
        from uuid import uuid4

        with pytest.raises(VenueNotFoundError):
            await book(db_session, gateway, uuid4(), test_user.id, "2025-01-01", "2025-01-03", standard_services)
        assert gateway.charges == []

    @pytest.mark.asyncio
    async def test_missing_service(self, db_session, gateway, test_venue, test_user):
        services = {"catering": "standard", "decoration": "standard", "photography": "standard"}

        with pytest.raises(InvalidServicesError) as exc_info:
            await book(db_session, gateway, test_venue.id, test_user.id, "2025-01-01", "2025-01-03", services)
        assert exc_info.value.code == "INVALID_SERVICES"
        assert gateway.charges == []

    @pytest.mark.asyncio
    async def test_guests_above_capacity(self, db_session, gateway, test_user, standard_services):
        small = await create_venue(db_session, name="Small Room", capacity=20)

        with pytest.raises(ValidationError) as exc_info:
            await book(
                db_session, gateway, small.id, test_user.id, "2025-01-01", "2025-01-03",
                standard_services, guests=21
            )
        assert exc_info.value.details["field"] == "guests"
        assert gateway.charges == []

    @pytest.mark.asyncio
    async def test_guests_must_be_positive(self, db_session, gateway, test_venue, test_user, standard_services):
        with pytest.raises(ValidationError):
            await book(
                db_session, gateway, test_venue.id, test_user.id, "2025-01-01", "2025-01-03",
                standard_services, guests=0
            )

    @pytest.mark.asyncio
    async def test_end_before_start(self, db_session, gateway, test_venue, test_user, standard_services):
        with pytest.raises(InvalidDateError):
            await book(db_session, gateway, test_venue.id, test_user.id, "2025-01-05", "2025-01-01", standard_services)

    @pytest.mark.asyncio
    async def test_unparseable_date(self, db_session, gateway, test_venue, test_user, standard_services):
        with pytest.raises(InvalidDateError):
            await book(db_session, gateway, test_venue.id, test_user.id, "next tuesday", "2025-01-01", standard_services)


class TestBookingLifecycle:

    @pytest.mark.asyncio
    async def test_get_booking_is_scoped_to_owner(
        self, db_session, gateway, test_venue, test_user, other_user, standard_services
    ):
        booking = await book(
            db_session, gateway, test_venue.id, test_user.id, "2025-01-01", "2025-01-03", standard_services
        )

        found = await venue_booking_service.get_booking(db_session, booking.id, test_user.id)
        assert found.id == booking.id

        with pytest.raises(NotFoundError):
            await venue_booking_service.get_booking(db_session, booking.id, other_user.id)

    @pytest.mark.asyncio
    async def test_list_user_bookings(
        self, db_session, gateway, test_venue, test_user, other_user, standard_services
    ):
        venue_id, user_id, other_id = test_venue.id, test_user.id, other_user.id
        await book(db_session, gateway, venue_id, user_id, "2025-01-01", "2025-01-02", standard_services)
        second = await book(db_session, gateway, venue_id, user_id, "2025-02-01", "2025-02-02", standard_services)
        await book(db_session, gateway, venue_id, other_id, "2025-03-01", "2025-03-02", standard_services)
        await venue_booking_service.cancel_booking(db_session, gateway, second.id, user_id)

        mine = await venue_booking_service.list_user_bookings(db_session, user_id)
        canceled = await venue_booking_service.list_user_bookings(
            db_session, user_id, status=VenueBookingStatus.CANCELED
        )

        assert len(mine) == 2
        assert all(b.user_id == user_id for b in mine)
        assert [b.id for b in canceled] == [second.id]

    @pytest.mark.asyncio
    async def test_cancel_refunds_and_frees_the_range(
        self, db_session, gateway, test_venue, test_user, other_user, standard_services
    ):
        venue_id, user_id, other_id = test_venue.id, test_user.id, other_user.id
        booking = await book(db_session, gateway, venue_id, user_id, "2025-01-02", "2025-01-04", standard_services)

        canceled = await venue_booking_service.cancel_booking(db_session, gateway, booking.id, user_id)

        assert canceled.status == VenueBookingStatus.CANCELED
        assert canceled.payment.status == PaymentStatus.REFUNDED
        assert canceled.payment.refunded_at is not None
        assert gateway.refunds == [gateway.charges[0].reference]

        rebooked = await book(db_session, gateway, venue_id, other_id, "2025-01-03", "2025-01-05", standard_services)
        assert rebooked.status == VenueBookingStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_cancel_twice_conflicts(self, db_session, gateway, test_venue, test_user, standard_services):
        user_id = test_user.id
        booking = await book(
            db_session, gateway, test_venue.id, user_id, "2025-01-01", "2025-01-03", standard_services
        )
        booking_id = booking.id
        await venue_booking_service.cancel_booking(db_session, gateway, booking_id, user_id)

        with pytest.raises(ConflictError):
            await venue_booking_service.cancel_booking(db_session, gateway, booking_id, user_id)
        assert len(gateway.refunds) == 1

    @pytest.mark.asyncio
    async def test_cannot_cancel_someone_elses_booking(
        self, db_session, gateway, test_venue, test_user, other_user, standard_services
    ):
        other_id = other_user.id
        booking = await book(
            db_session, gateway, test_venue.id, test_user.id, "2025-01-01", "2025-01-03", standard_services
        )

        with pytest.raises(NotFoundError):
            await venue_booking_service.cancel_booking(db_session, gateway, booking.id, other_id)
        assert gateway.refunds == []


class TestBookingMetrics:

    @pytest.mark.asyncio
    async def test_outcomes_are_counted(
        self, db_session, gateway, test_venue, test_user, standard_services
    ):
        await metrics_collector.reset_metrics()
        venue_id, user_id = test_venue.id, test_user.id

        await book(db_session, gateway, venue_id, user_id, "2025-01-02", "2025-01-04", standard_services)
        with pytest.raises(VenueUnavailableError):
            await book(db_session, gateway, venue_id, user_id, "2025-01-03", "2025-01-05", standard_services)

        metrics = await metrics_collector.get_metrics()
        assert metrics["total_bookings"] == 2
        assert metrics["successful_bookings"] == 1
        assert metrics["failed_bookings"] == 1
        assert metrics["conflicted_bookings"] == 1
        assert metrics["concurrency"]["current_concurrent_bookings"] == 0
        await metrics_collector.reset_metrics()
