"""Auth and self-service (login, password setup/change, profile, data export, account deletion) business logic."""

import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from membership.core import create_access_token, hash_password, hash_token, verify_password
from membership.db.models import Member
from membership.schemas import (
    ChangePasswordRequest,
    DeleteAccountRequest,
    ExportMyDataRequest,
    LoginRequest,
    MemberResponse,
    SetupPasswordRequest,
    TokenResponse,
    UpdateProfileRequest,
)
from membership.serializers import member_to_response
from membership.services.export import ExportFile, export_personal_data
from membership.services.members import email_taken
from membership.utils import ensure_utc, normalize_email

logger = logging.getLogger(__name__)


async def login(db: AsyncSession, body: LoginRequest) -> TokenResponse:
    """Authenticate and return a token. Raises HTTPException if invalid credentials."""
    email = normalize_email(body.email)
    result = await db.execute(select(Member).where(func.lower(Member.email) == email))
    member = result.scalar_one_or_none()
    if not member or member.is_deleted or not verify_password(body.password, member.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    token = create_access_token(subject=str(member.id))
    return TokenResponse(access_token=token)


async def change_password(db: AsyncSession, member: Member, body: ChangePasswordRequest) -> None:
    if not verify_password(body.current_password, member.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
    member.hashed_password = hash_password(body.new_password)
    await db.flush()
    logger.info("Password changed for member %s", member.id)


async def setup_password(db: AsyncSession, body: SetupPasswordRequest) -> TokenResponse:
    """Set the first password from an emailed setup token; the token is consumed."""
    result = await db.execute(
        select(Member).where(Member.password_setup_token_hash == hash_token(body.token))
    )
    member = result.scalar_one_or_none()
    now = datetime.now(timezone.utc)

    if not member or member.is_deleted:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired setup link")
    expires_at = ensure_utc(member.password_setup_expires_at)
    if not expires_at or expires_at < now:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Setup link has expired. Please ask an administrator for a new one.",
        )

    member.hashed_password = hash_password(body.password)
    member.password_setup_token_hash = None
    member.password_setup_expires_at = None
    if not member.email_verified_at:
        member.email_verified_at = now
    await db.flush()
    return TokenResponse(access_token=create_access_token(subject=str(member.id)))


async def delete_account(db: AsyncSession, member: Member, body: DeleteAccountRequest) -> None:
    if not verify_password(body.password, member.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password is incorrect")
    member.deleted_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("Member %s deleted their account", member.id)


async def update_profile(db: AsyncSession, member: Member, body: UpdateProfileRequest) -> MemberResponse:
    """Change the caller's own name and/or email."""
    if body.name is not None:
        member.name = body.name
    if body.email is not None:
        email = normalize_email(body.email)
        if email != member.email and await email_taken(db, email, exclude_id=member.id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
        if email != member.email:
            logger.info("Member %s changed their email address", member.id)
        member.email = email
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered") from None
    return member_to_response(member)


async def export_my_data(db: AsyncSession, member: Member, body: ExportMyDataRequest) -> ExportFile:
    if not verify_password(body.password, member.hashed_password):
        logger.warning("Data export with wrong password for member %s", member.id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password is incorrect")
    return await export_personal_data(db, member)


class AuthService:
    """Facade for auth operations."""

    @staticmethod
    async def login(db: AsyncSession, body: LoginRequest) -> TokenResponse:
        return await login(db, body)

    @staticmethod
    async def me(member: Member) -> MemberResponse:
        return member_to_response(member)

    @staticmethod
    async def change_password(db: AsyncSession, member: Member, body: ChangePasswordRequest) -> None:
        await change_password(db, member, body)

    @staticmethod
    async def setup_password(db: AsyncSession, body: SetupPasswordRequest) -> TokenResponse:
        return await setup_password(db, body)

    @staticmethod
    async def delete_account(db: AsyncSession, member: Member, body: DeleteAccountRequest) -> None:
        await delete_account(db, member, body)

    @staticmethod
    async def update_profile(db: AsyncSession, member: Member, body: UpdateProfileRequest) -> MemberResponse:
        return await update_profile(db, member, body)

    @staticmethod
    async def export_my_data(db: AsyncSession, member: Member, body: ExportMyDataRequest) -> ExportFile:
        return await export_my_data(db, member, body)


auth_service = AuthService()
