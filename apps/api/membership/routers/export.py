from datetime import date

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from membership.dependencies import get_db, require_admin
from membership.services.export import ExportFile, export_service

router = APIRouter(prefix="/export", tags=["export"], dependencies=[Depends(require_admin)])


def attachment_response(export: ExportFile) -> Response:
    return Response(
        content=export.body,
        media_type=export.media_type,
        headers={"Content-Disposition": export.content_disposition},
    )


@router.get("/members")
async def export_members(
    member_type: str = Query("all", description="all, ordentlich, foerdernd or ausgetreten"),
    format: str = Query("csv", description="csv or json"),
    db: AsyncSession = Depends(get_db),
):
    return attachment_response(await export_service.export_members(db, member_type, format))


@router.get("/bookings")
async def export_bookings(
    format: str = Query("csv", description="csv or json"),
    booking_type: str = Query("all", description="all, paid or open"),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return attachment_response(await export_service.export_bookings(db, format, booking_type, start_date, end_date))


@router.get("/emails")
async def export_emails(
    email_type: str = Query("all", description="all, system or user"),
    format: str = Query("csv", description="csv or json"),
    db: AsyncSession = Depends(get_db),
):
    return attachment_response(await export_service.export_emails(db, email_type, format))


@router.get("/members/{member_id}")
async def export_member(
    member_id: str,
    format: str = Query("csv", description="csv or json"),
    db: AsyncSession = Depends(get_db),
):
    return attachment_response(await export_service.export_member(db, member_id, format))


@router.get("/bookings/{booking_id}")
async def export_booking(
    booking_id: str,
    format: str = Query("csv", description="csv or json"),
    db: AsyncSession = Depends(get_db),
):
    return attachment_response(await export_service.export_booking(db, booking_id, format))
