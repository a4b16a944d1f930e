"""Bookings (membership dues) business logic."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from membership.core import DEFAULT_BOOKING_PURPOSE
from membership.db.models import Booking, Member
from membership.schemas import AssignBookingRequest, AssignBookingResponse, BookingResponse, MemberType
from membership.serializers import booking_to_response

logger = logging.getLogger(__name__)


def personalized_purpose(base: str | None, year: int, member_name: str) -> str:
    """'<purpose> <year>, <member name>', falling back to the default purpose."""
    purpose = (base or "").strip() or DEFAULT_BOOKING_PURPOSE
    return f"{purpose} {year}, {member_name}"


async def list_bookings(db: AsyncSession) -> list[BookingResponse]:
    result = await db.execute(
        select(Booking)
        .where(Booking.deleted_at.is_(None))
        .order_by(Booking.created_at.desc(), Booking.id.asc())
    )
    return [booking_to_response(b) for b in result.scalars().all()]


async def list_member_bookings(db: AsyncSession, member_id: str) -> list[BookingResponse]:
    result = await db.execute(
        select(Booking)
        .where(Booking.member_id == member_id, Booking.deleted_at.is_(None))
        .order_by(Booking.created_at.desc(), Booking.id.asc())
    )
    return [booking_to_response(b) for b in result.scalars().all()]


async def _active_members_of_type(db: AsyncSession, member_type: MemberType) -> list[Member]:
    result = await db.execute(
        select(Member)
        .where(Member.deleted_at.is_(None), Member.of_mg.is_(member_type.of_mg))
        .order_by(Member.name.asc())
    )
    return list(result.scalars().all())


async def assign_bookings(db: AsyncSession, body: AssignBookingRequest) -> AssignBookingResponse:
    """Create one dues booking per active member of the requested type."""
    targets = await _active_members_of_type(db, body.member_type)
    if not targets:
        logger.warning("No active members found with member type %s", body.member_type.value)
        return AssignBookingResponse(created=0)

    year = datetime.now(timezone.utc).year
    bookings = []
    for member in targets:
        purpose = personalized_purpose(body.actual_purpose, year, member.name)
        bookings.append(
            Booking(
                member_id=member.id,
                expected_amount=body.expected_amount,
                actual_amount=body.actual_amount,
                expected_purpose=purpose,
                actual_purpose=purpose,
            )
        )
    db.add_all(bookings)
    await db.flush()
    logger.info("Assigned bookings to %d members with member type %s", len(bookings), body.member_type.value)
    return AssignBookingResponse(created=len(bookings))


class BookingService:
    """Facade for booking operations."""

    @staticmethod
    async def list_bookings(db: AsyncSession) -> list[BookingResponse]:
        return await list_bookings(db)

    @staticmethod
    async def list_member_bookings(db: AsyncSession, member_id: str) -> list[BookingResponse]:
        return await list_member_bookings(db, member_id)

    @staticmethod
    async def assign_bookings(db: AsyncSession, body: AssignBookingRequest) -> AssignBookingResponse:
        return await assign_bookings(db, body)


booking_service = BookingService()
