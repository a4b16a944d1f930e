"""Members, bookings and emails export as CSV or JSON attachments, plus single-record and personal data exports."""

import csv
import io
import json
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from membership.db.models import Booking, Email, Member
from membership.services.errors import InvalidArgumentError
from membership.services.members import get_member_or_404

logger = logging.getLogger(__name__)

EXPORT_FORMATS = {
    "csv": "text/csv; charset=utf-8",
    "json": "application/json",
}

MEMBER_EXPORT_TYPES = ("all", "ordentlich", "foerdernd", "ausgetreten")
BOOKING_EXPORT_TYPES = ("all", "paid", "open")
EMAIL_EXPORT_TYPES = ("all", "system", "user")

MEMBER_COLUMNS = (
    "id",
    "salutation",
    "academic_title",
    "rank",
    "name",
    "email",
    "phone",
    "birthday",
    "street",
    "postal_code",
    "city",
    "country",
    "of_mg",
    "created_at",
    "deleted_at",
)
BOOKING_COLUMNS = (
    "id",
    "member_id",
    "member_name",
    "expected_purpose",
    "expected_amount",
    "received_at",
    "actual_purpose",
    "actual_amount",
    "note",
    "account_statement_page",
    "code",
    "created_at",
)
EMAIL_COLUMNS = (
    "id",
    "from_address",
    "to_address",
    "subject",
    "content",
    "member_id",
    "system_email",
    "created_at",
)


@dataclass(frozen=True)
class ExportFile:
    filename: str
    media_type: str
    body: bytes

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def encode_csv(rows: Iterable[dict[str, Any]], columns: tuple[str, ...]) -> bytes:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=list(columns), extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow({k: _cell(row.get(k)) for k in columns})
    return buf.getvalue().encode("utf-8")


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def encode_json(rows: Iterable[dict[str, Any]], columns: tuple[str, ...]) -> bytes:
    data = [{k: row.get(k) for k in columns} for row in rows]
    return json.dumps(data, default=_json_default, ensure_ascii=False, indent=2).encode("utf-8")


def _check_choice(value: str | None, choices: tuple[str, ...], label: str) -> str:
    normalized = (value or "").strip().lower()
    if normalized not in choices:
        raise InvalidArgumentError(f"Invalid {label} '{value}'. Expected one of: {', '.join(choices)}")
    return normalized


def _check_format(fmt: str | None) -> str:
    return _check_choice(fmt, tuple(EXPORT_FORMATS), "export format")


def _dated(stem: str, fmt: str) -> str:
    return f"{stem}_{datetime.now(timezone.utc).date().isoformat()}.{fmt}"


def build_export(
    stem: str, rows: list[dict[str, Any]], columns: tuple[str, ...], fmt: str
) -> ExportFile:
    """Encode rows in the requested format as a dated attachment."""
    fmt = _check_format(fmt)
    body = encode_csv(rows, columns) if fmt == "csv" else encode_json(rows, columns)
    return ExportFile(filename=_dated(stem, fmt), media_type=EXPORT_FORMATS[fmt], body=body)


def _member_row(member: Member) -> dict[str, Any]:
    return {k: getattr(member, k) for k in MEMBER_COLUMNS}


def _booking_row(booking: Booking) -> dict[str, Any]:
    row = {k: getattr(booking, k) for k in BOOKING_COLUMNS if k != "member_name"}
    row["member_name"] = booking.member.name if booking.member else None
    return row


def _email_row(email: Email) -> dict[str, Any]:
    row = {k: getattr(email, k) for k in EMAIL_COLUMNS if k != "system_email"}
    row["system_email"] = email.is_system_email
    return row


async def export_members(db: AsyncSession, member_type: str | None, fmt: str) -> ExportFile:
    member_type = _check_choice(member_type or "all", MEMBER_EXPORT_TYPES, "member type")
    _check_format(fmt)

    stmt = select(Member)
    if member_type == "ordentlich":
        stmt = stmt.where(Member.deleted_at.is_(None), Member.of_mg.is_(True))
    elif member_type == "foerdernd":
        stmt = stmt.where(Member.deleted_at.is_(None), Member.of_mg.is_(False))
    elif member_type == "ausgetreten":
        stmt = stmt.where(Member.deleted_at.is_not(None))
    result = await db.execute(stmt.order_by(Member.name.asc(), Member.id.asc()))
    rows = [_member_row(m) for m in result.scalars().all()]

    logger.info("Exporting %d members (type=%s, format=%s)", len(rows), member_type, fmt)
    return build_export(f"mitglieder_{member_type}", rows, MEMBER_COLUMNS, fmt)


def _day_bounds(start_date: date | None, end_date: date | None) -> tuple[datetime | None, datetime | None]:
    if start_date and end_date and start_date > end_date:
        raise InvalidArgumentError("start_date must not be after end_date")
    start = datetime.combine(start_date, time.min, tzinfo=timezone.utc) if start_date else None
    # Exclusive upper bound: the day after end_date.
    end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc) if end_date else None
    return start, end


async def export_bookings(
    db: AsyncSession,
    fmt: str,
    booking_type: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> ExportFile:
    """Bookings export; the date range filters received_at, or created_at for open bookings."""
    booking_type = _check_choice(booking_type or "all", BOOKING_EXPORT_TYPES, "booking type")
    _check_format(fmt)
    start, end = _day_bounds(start_date, end_date)

    stmt = select(Booking).where(Booking.deleted_at.is_(None))
    if booking_type == "paid":
        stmt = stmt.where(Booking.received_at.is_not(None))
    elif booking_type == "open":
        stmt = stmt.where(Booking.received_at.is_(None))
    date_column = Booking.created_at if booking_type == "open" else Booking.received_at
    if start is not None:
        stmt = stmt.where(date_column >= start)
    if end is not None:
        stmt = stmt.where(date_column < end)

    result = await db.execute(stmt.order_by(date_column.desc(), Booking.id.asc()))
    rows = [_booking_row(b) for b in result.scalars().all()]

    logger.info("Exporting %d bookings (type=%s, format=%s)", len(rows), booking_type, fmt)
    return build_export(f"buchungen_{booking_type}", rows, BOOKING_COLUMNS, fmt)


async def export_emails(db: AsyncSession, email_type: str | None, fmt: str) -> ExportFile:
    email_type = _check_choice(email_type or "all", EMAIL_EXPORT_TYPES, "email type")
    _check_format(fmt)

    stmt = select(Email)
    if email_type == "system":
        stmt = stmt.where(Email.member_id.is_(None))
    elif email_type == "user":
        stmt = stmt.where(Email.member_id.is_not(None))
    result = await db.execute(stmt.order_by(Email.created_at.desc(), Email.id.asc()))
    rows = [_email_row(e) for e in result.scalars().all()]

    logger.info("Exporting %d emails (type=%s, format=%s)", len(rows), email_type, fmt)
    return build_export(f"emails_{email_type}", rows, EMAIL_COLUMNS, fmt)


async def export_member(db: AsyncSession, member_id: str, fmt: str) -> ExportFile:
    """One member record, deleted members included."""
    fmt = _check_format(fmt)
    member = await get_member_or_404(db, member_id)
    logger.info("Exporting member %s (format=%s)", member.id, fmt)
    return build_export(f"user_{str(member.id)[:8]}", [_member_row(member)], MEMBER_COLUMNS, fmt)


async def _get_booking_or_404(db: AsyncSession, booking_id: str) -> Booking:
    try:
        uuid.UUID(str(booking_id))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found") from None
    result = await db.execute(
        select(Booking).where(Booking.id == booking_id, Booking.deleted_at.is_(None))
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


async def export_booking(db: AsyncSession, booking_id: str, fmt: str) -> ExportFile:
    fmt = _check_format(fmt)
    booking = await _get_booking_or_404(db, booking_id)
    logger.info("Exporting booking %s (format=%s)", booking.id, fmt)
    return build_export(f"booking_{str(booking.id)[:8]}", [_booking_row(booking)], BOOKING_COLUMNS, fmt)


PERSONAL_DATA_NOTICE = (
    "This export contains all personal data stored about you by the Bunkermuseum "
    "member administration (GDPR Art. 15 and Art. 20)."
)


async def export_personal_data(db: AsyncSession, member: Member) -> ExportFile:
    """Everything stored about one member as a single JSON document.

    Credentials and setup tokens are left out.
    """
    result = await db.execute(
        select(Booking)
        .where(Booking.member_id == member.id, Booking.deleted_at.is_(None))
        .order_by(Booking.created_at.asc(), Booking.id.asc())
    )
    bookings = [
        {k: v for k, v in _booking_row(b).items() if k not in ("member_id", "member_name")}
        for b in result.scalars().all()
    ]
    personal = {k: getattr(member, k) for k in MEMBER_COLUMNS if k not in ("id", "created_at", "deleted_at")}
    document = {
        "personal_data": personal,
        "account": {
            "id": str(member.id),
            "roles": member.role_names,
            "email_verified": member.email_verified_at is not None,
            "email_verified_at": member.email_verified_at,
            "created_at": member.created_at,
            "updated_at": member.updated_at,
        },
        "bookings": bookings,
        "notice": PERSONAL_DATA_NOTICE,
    }
    body = json.dumps(document, default=_json_default, ensure_ascii=False, indent=2).encode("utf-8")
    logger.info("Personal data export for member %s (%d bookings)", member.id, len(bookings))
    return ExportFile(
        filename=_dated(f"user_{str(member.id)[:8]}", "json"),
        media_type=EXPORT_FORMATS["json"],
        body=body,
    )


class ExportService:
    """Facade for export operations."""

    @staticmethod
    async def export_members(db: AsyncSession, member_type: str | None, fmt: str) -> ExportFile:
        return await export_members(db, member_type, fmt)

    @staticmethod
    async def export_bookings(
        db: AsyncSession,
        fmt: str,
        booking_type: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> ExportFile:
        return await export_bookings(db, fmt, booking_type, start_date, end_date)

    @staticmethod
    async def export_emails(db: AsyncSession, email_type: str | None, fmt: str) -> ExportFile:
        return await export_emails(db, email_type, fmt)

    @staticmethod
    async def export_member(db: AsyncSession, member_id: str, fmt: str) -> ExportFile:
        return await export_member(db, member_id, fmt)

    @staticmethod
    async def export_booking(db: AsyncSession, booking_id: str, fmt: str) -> ExportFile:
        return await export_booking(db, booking_id, fmt)


export_service = ExportService()
