from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from membership.db.models import Member
from membership.dependencies import get_current_member, get_db, require_admin
from membership.schemas import AssignBookingRequest, AssignBookingResponse, BookingResponse
from membership.services.bookings import booking_service

router = APIRouter(tags=["bookings"])


@router.get("/bookings", response_model=list[BookingResponse], dependencies=[Depends(require_admin)])
async def list_bookings(
    db: AsyncSession = Depends(get_db),
):
    return await booking_service.list_bookings(db)


@router.post(
    "/bookings/assign",
    response_model=AssignBookingResponse,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
async def assign_bookings(
    body: AssignBookingRequest,
    db: AsyncSession = Depends(get_db),
):
    return await booking_service.assign_bookings(db, body)


@router.get("/me/bookings", response_model=list[BookingResponse])
async def list_my_bookings(
    current_member: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db),
):
    return await booking_service.list_member_bookings(db, current_member.id)
