from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from membership.core import get_settings, limiter
from membership.db.models import Member
from membership.dependencies import get_current_member, get_db
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
from membership.routers.export import attachment_response
from membership.services.auth import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
@limiter.limit(get_settings().auth_login_rate_limit)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    return await auth_service.login(db, body)


@router.get("/me", response_model=MemberResponse)
async def me(
    current_member: Member = Depends(get_current_member),
):
    return await auth_service.me(current_member)


@router.patch("/me", response_model=MemberResponse)
async def update_profile(
    body: UpdateProfileRequest,
    current_member: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db),
):
    return await auth_service.update_profile(db, current_member, body)


@router.post("/me/export")
async def export_my_data(
    body: ExportMyDataRequest,
    current_member: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db),
):
    return attachment_response(await auth_service.export_my_data(db, current_member, body))


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    body: ChangePasswordRequest,
    current_member: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db),
):
    await auth_service.change_password(db, current_member, body)


@router.post("/setup-password", response_model=TokenResponse)
async def setup_password(
    body: SetupPasswordRequest,
    db: AsyncSession = Depends(get_db),
):
    return await auth_service.setup_password(db, body)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    body: DeleteAccountRequest,
    current_member: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db),
):
    await auth_service.delete_account(db, current_member, body)
