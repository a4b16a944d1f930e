"""Outgoing email: send through the provider and keep an audit log."""

import logging

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from membership.db.models import Email, Member
from membership.providers import EmailConfigError, EmailServiceError, OutgoingEmail, get_email_provider
from membership.schemas import EmailResponse, MemberResponse, PageResponse, SendEmailRequest
from membership.serializers import email_to_response, member_to_response
from membership.services.paging import check_page_request

logger = logging.getLogger(__name__)


async def send_email(db: AsyncSession, sender: Member, body: SendEmailRequest) -> EmailResponse:
    """Send an email on behalf of sender and record it.

    Nothing is recorded when delivery fails.
    """
    try:
        provider = get_email_provider()
    except EmailConfigError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Email service is not configured",
        )

    to_address = str(body.to).strip().lower()
    try:
        message_id = await provider.send(
            OutgoingEmail(to=to_address, subject=body.subject, text=body.content, reply_to=sender.email)
        )
    except EmailServiceError as e:
        logger.warning("Email from member %s to %s failed: %s", sender.id, to_address, e)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Email could not be sent")

    email = Email(
        from_address=provider.sender_address,
        to_address=to_address,
        subject=body.subject,
        content=body.content,
        member_id=sender.id,
    )
    db.add(email)
    await db.flush()
    logger.info("Member %s sent email %s (provider id %s)", sender.id, email.id, message_id)
    return email_to_response(email)


async def list_emails(db: AsyncSession, page: int, size: int) -> PageResponse[EmailResponse]:
    check_page_request(page, size)
    total = (await db.execute(select(func.count()).select_from(Email))).scalar_one()
    result = await db.execute(
        select(Email).order_by(Email.created_at.desc(), Email.id.asc()).offset(page * size).limit(size)
    )
    return PageResponse[EmailResponse].of(
        [email_to_response(e) for e in result.scalars().all()], page, size, total
    )


async def list_recipients(db: AsyncSession) -> list[MemberResponse]:
    """Active members, by name, for choosing an email recipient."""
    result = await db.execute(
        select(Member).where(Member.deleted_at.is_(None)).order_by(Member.name.asc(), Member.id.asc())
    )
    return [member_to_response(m) for m in result.scalars().all()]


class EmailService:
    """Facade for email operations."""

    @staticmethod
    async def send_email(db: AsyncSession, sender: Member, body: SendEmailRequest) -> EmailResponse:
        return await send_email(db, sender, body)

    @staticmethod
    async def list_emails(db: AsyncSession, page: int, size: int) -> PageResponse[EmailResponse]:
        return await list_emails(db, page, size)

    @staticmethod
    async def list_recipients(db: AsyncSession) -> list[MemberResponse]:
        return await list_recipients(db)


email_service = EmailService()
