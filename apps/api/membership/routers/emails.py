from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from membership.core import DEFAULT_PAGE_SIZE
from membership.db.models import Member
from membership.dependencies import get_db, require_admin
from membership.schemas import EmailResponse, MemberResponse, PageResponse, SendEmailRequest
from membership.services.emails import email_service

router = APIRouter(prefix="/emails", tags=["emails"])


@router.post("", response_model=EmailResponse, status_code=201)
async def send_email(
    body: SendEmailRequest,
    current_member: Member = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await email_service.send_email(db, current_member, body)


@router.get("", response_model=PageResponse[EmailResponse], dependencies=[Depends(require_admin)])
async def list_emails(
    page: int = Query(0),
    size: int = Query(DEFAULT_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    return await email_service.list_emails(db, page, size)


@router.get("/recipients", response_model=list[MemberResponse], dependencies=[Depends(require_admin)])
async def list_recipients(db: AsyncSession = Depends(get_db)):
    return await email_service.list_recipients(db)
