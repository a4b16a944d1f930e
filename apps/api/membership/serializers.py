"""ORM model -> API response converters."""

from membership.db.models import Booking, Email, Member
from membership.schemas import BookingResponse, EmailResponse, MemberResponse, MemberSearchHit
from membership.services.search import SearchResult


def member_to_response(member: Member) -> MemberResponse:
    return MemberResponse(
        id=str(member.id),
        name=member.name,
        email=member.email,
        phone=member.phone,
        salutation=member.salutation,
        academic_title=member.academic_title,
        rank=member.rank,
        birthday=member.birthday,
        street=member.street,
        city=member.city,
        postal_code=member.postal_code,
        country=member.country,
        of_mg=bool(member.of_mg),
        roles=member.role_names,
        email_verified_at=member.email_verified_at,
        created_at=member.created_at,
        updated_at=member.updated_at,
        deleted_at=member.deleted_at,
    )


def search_result_to_hit(result: SearchResult) -> MemberSearchHit:
    return MemberSearchHit(
        member=member_to_response(result.record),
        tier=result.tier.name,
        score=round(float(result.score), 4),
    )


def booking_to_response(booking: Booking) -> BookingResponse:
    member = booking.member
    return BookingResponse(
        id=str(booking.id),
        member_id=str(booking.member_id) if booking.member_id else None,
        member_name=member.name if member else None,
        member_email=member.email if member else None,
        expected_purpose=booking.expected_purpose,
        expected_amount=booking.expected_amount,
        received_at=booking.received_at,
        actual_purpose=booking.actual_purpose,
        actual_amount=booking.actual_amount,
        note=booking.note,
        account_statement_page=booking.account_statement_page,
        code=booking.code,
        created_at=booking.created_at,
    )


def email_to_response(email: Email) -> EmailResponse:
    return EmailResponse(
        id=str(email.id),
        from_address=email.from_address,
        to_address=email.to_address,
        subject=email.subject,
        content=email.content,
        member_id=str(email.member_id) if email.member_id else None,
        created_at=email.created_at,
    )
