"""Tests for confirming, cancelling and closing out bookings."""

import asyncio

import pytest

from booking_engine.engine import BookingEngine
from booking_engine.errors import ErrorCode, InvalidTransitionError, NotFoundError
from booking_engine.schemas.booking_schema import BookingStatus
from booking_engine.store.booking import InMemoryBookingLedger
from tests.conftest import (
    ORG_ID,
    find_booking,
    make_booking,
    portal_payload,
    public_payload,
    slot_map,
)


async def book_public(engine, **overrides):
    result = await engine.create_public_booking(public_payload(**overrides))
    assert result.success, result.error
    return result.booking_id


class TestConfirm:
    @pytest.mark.asyncio
    async def test_pending_portal_booking_is_confirmed(self, engine, collaborators):
        result = await engine.create_portal_booking(portal_payload())
        booking = await engine.confirm_booking(ORG_ID, result.booking_id)
        assert booking.status == BookingStatus.CONFIRMED
        assert find_booking(collaborators.ledger, result.booking_id).status == BookingStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_confirming_sends_confirmed_email(self, engine, collaborators):
        result = await engine.create_portal_booking(portal_payload())
        await engine.confirm_booking(ORG_ID, result.booking_id)
        await engine.shutdown()
        statuses = [m.status for m in collaborators.sender.confirmations]
        assert statuses == [BookingStatus.PENDING, BookingStatus.CONFIRMED]

    @pytest.mark.asyncio
    async def test_cannot_confirm_confirmed_booking(self, engine):
        booking_id = await book_public(engine)
        with pytest.raises(InvalidTransitionError) as exc_info:
            await engine.confirm_booking(ORG_ID, booking_id)
        assert exc_info.value.code == ErrorCode.VALIDATION


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_sets_status_and_timestamp(self, engine):
        booking_id = await book_public(engine)
        booking = await engine.cancel_booking(ORG_ID, booking_id)
        assert booking.status == BookingStatus.CANCELLED
        assert booking.cancelled_at is not None

    @pytest.mark.asyncio
    async def test_cancel_frees_the_slot(self, engine):
        booking_id = await book_public(engine)
        taken = slot_map(await engine.get_available_slots(ORG_ID, 30, 15, "2024-06-03"))
        assert taken["10:00"] is False

        await engine.cancel_booking(ORG_ID, booking_id)
        freed = slot_map(await engine.get_available_slots(ORG_ID, 30, 15, "2024-06-03"))
        assert all(freed.values())

        rebooked = await engine.create_public_booking(public_payload(email="other@example.com"))
        assert rebooked.success is True

    @pytest.mark.asyncio
    async def test_cancel_sends_cancellation_email(self, engine, collaborators):
        booking_id = await book_public(engine)
        await engine.cancel_booking(ORG_ID, booking_id)
        await engine.shutdown()
        assert len(collaborators.sender.cancellations) == 1
        message = collaborators.sender.cancellations[0]
        assert message.recipient == "ada@example.com"
        assert message.org_name == "Acme Studio"
        assert message.time == "10:00"

    @pytest.mark.asyncio
    async def test_pending_booking_can_be_cancelled(self, engine):
        result = await engine.create_portal_booking(portal_payload())
        booking = await engine.cancel_booking(ORG_ID, result.booking_id)
        assert booking.status == BookingStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_cancelled_booking_cannot_be_reactivated(self, engine):
        booking_id = await book_public(engine)
        await engine.cancel_booking(ORG_ID, booking_id)
        with pytest.raises(InvalidTransitionError):
            await engine.confirm_booking(ORG_ID, booking_id)
        with pytest.raises(InvalidTransitionError):
            await engine.cancel_booking(ORG_ID, booking_id)


class TestCloseOut:
    @pytest.mark.asyncio
    async def test_complete_confirmed_booking(self, engine, collaborators):
        booking_id = await book_public(engine)
        booking = await engine.complete_booking(ORG_ID, booking_id)
        await engine.shutdown()
        assert booking.status == BookingStatus.COMPLETED
        assert collaborators.sender.cancellations == []

    @pytest.mark.asyncio
    async def test_mark_no_show(self, engine):
        booking_id = await book_public(engine)
        booking = await engine.mark_no_show(ORG_ID, booking_id)
        assert booking.status == BookingStatus.NO_SHOW

    @pytest.mark.asyncio
    async def test_cannot_complete_pending_booking(self, engine):
        result = await engine.create_portal_booking(portal_payload())
        with pytest.raises(InvalidTransitionError):
            await engine.complete_booking(ORG_ID, result.booking_id)


class TestLookup:
    @pytest.mark.asyncio
    async def test_unknown_booking(self, engine):
        with pytest.raises(NotFoundError):
            await engine.cancel_booking(ORG_ID, "bk_missing")

    @pytest.mark.asyncio
    async def test_booking_of_other_organization(self, engine, collaborators):
        booking_id = await book_public(engine)
        with pytest.raises(NotFoundError):
            await engine.cancel_booking("org_other", booking_id)
        assert find_booking(collaborators.ledger, booking_id).status == BookingStatus.CONFIRMED


class TestConcurrentStatusChanges:
    @pytest.mark.asyncio
    async def test_racing_confirm_and_cancel_cannot_revive_booking(self, collaborators, clock):
        collaborators.ledger = InMemoryBookingLedger(latency_seconds=0.01)
        engine = BookingEngine(collaborators, clock=clock)
        created = await engine.create_portal_booking(portal_payload())
        assert created.status == BookingStatus.PENDING

        outcomes = await asyncio.gather(
            engine.cancel_booking(ORG_ID, created.booking_id),
            engine.confirm_booking(ORG_ID, created.booking_id),
            return_exceptions=True,
        )
        assert sum(isinstance(o, InvalidTransitionError) for o in outcomes) == 1
        winner = next(o for o in outcomes if not isinstance(o, Exception))
        stored = find_booking(collaborators.ledger, created.booking_id)
        assert stored.status == winner.status

        await engine.shutdown()
        status_emails = (
            len(collaborators.sender.cancellations) + len(collaborators.sender.confirmations) - 1
        )
        assert status_emails == 1

    @pytest.mark.asyncio
    async def test_racing_cancels_succeed_once(self, collaborators, clock):
        collaborators.ledger = InMemoryBookingLedger(latency_seconds=0.01)
        engine = BookingEngine(collaborators, clock=clock)
        booking_id = await book_public(engine)

        outcomes = await asyncio.gather(
            engine.cancel_booking(ORG_ID, booking_id),
            engine.cancel_booking(ORG_ID, booking_id),
            return_exceptions=True,
        )
        assert sum(isinstance(o, InvalidTransitionError) for o in outcomes) == 1
        await engine.shutdown()
        assert len(collaborators.sender.cancellations) == 1

    @pytest.mark.asyncio
    async def test_update_with_stale_status_is_rejected(self, collaborators):
        ledger = collaborators.ledger
        booking_id = await ledger.create_booking(
            make_booking("10:00", status=BookingStatus.PENDING)
        )
        stored = await ledger.get_booking(booking_id)
        await ledger.update_booking(
            stored.model_copy(update={"status": BookingStatus.CANCELLED}),
            expected_status=BookingStatus.PENDING,
        )
        with pytest.raises(InvalidTransitionError):
            await ledger.update_booking(
                stored.model_copy(update={"status": BookingStatus.CONFIRMED}),
                expected_status=BookingStatus.PENDING,
            )
        assert (await ledger.get_booking(booking_id)).status == BookingStatus.CANCELLED


class TestBestEffortNotification:
    @pytest.mark.asyncio
    async def test_confirm_survives_organization_lookup_failure(self, engine, collaborators, caplog):
        created = await engine.create_portal_booking(portal_payload())

        async def broken(_):
            raise RuntimeError("org store down")

        collaborators.organizations.get_organization_config = broken
        booking = await engine.confirm_booking(ORG_ID, created.booking_id)
        assert booking.status == BookingStatus.CONFIRMED
        assert find_booking(collaborators.ledger, created.booking_id).status == BookingStatus.CONFIRMED
        assert "Failed to notify guest" in caplog.text

    @pytest.mark.asyncio
    async def test_cancel_survives_organization_lookup_timeout(self, collaborators, clock):
        engine = BookingEngine(collaborators, clock=clock, timeout_seconds=0.05)
        booking_id = await book_public(engine)

        async def hang(_):
            await asyncio.sleep(10)

        collaborators.organizations.get_organization_config = hang
        booking = await engine.cancel_booking(ORG_ID, booking_id)
        await engine.shutdown()
        assert booking.status == BookingStatus.CANCELLED
        assert collaborators.sender.cancellations == []
