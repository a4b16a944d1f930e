from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from membership.core import DEFAULT_PAGE_SIZE
from membership.dependencies import get_db, require_admin
from membership.schemas import (
    MemberCreateRequest,
    MemberResponse,
    MemberSearchHit,
    PageResponse,
    PatchMemberRequest,
)
from membership.services.members import member_service

router = APIRouter(prefix="/members", tags=["members"], dependencies=[Depends(require_admin)])


@router.get("", response_model=PageResponse[MemberResponse])
async def list_members(
    page: int = Query(0),
    size: int = Query(DEFAULT_PAGE_SIZE),
    search: str | None = Query(None),
    status: str | None = Query(None, description="active, deleted or all"),
    db: AsyncSession = Depends(get_db),
):
    return await member_service.list_members(db, page, size, search, status)


@router.get("/search", response_model=PageResponse[MemberSearchHit])
async def search_members(
    q: str = Query(..., description="Free text matched against name, email and phone"),
    status: str | None = Query(None, description="active, deleted or all"),
    page: int = Query(0),
    size: int = Query(DEFAULT_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    return await member_service.search(db, q, status, page, size)


@router.post("", response_model=MemberResponse, status_code=201)
async def create_member(
    body: MemberCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    return await member_service.create_member(db, body)


@router.get("/{member_id}", response_model=MemberResponse)
async def get_member(
    member_id: str,
    db: AsyncSession = Depends(get_db),
):
    return await member_service.get_member(db, member_id)


@router.patch("/{member_id}", response_model=MemberResponse)
async def update_member(
    member_id: str,
    body: PatchMemberRequest,
    db: AsyncSession = Depends(get_db),
):
    return await member_service.update_member(db, member_id, body)


@router.delete("/{member_id}", response_model=MemberResponse)
async def delete_member(
    member_id: str,
    db: AsyncSession = Depends(get_db),
):
    return await member_service.delete_member(db, member_id)


@router.post("/{member_id}/restore", response_model=MemberResponse)
async def restore_member(
    member_id: str,
    db: AsyncSession = Depends(get_db),
):
    return await member_service.restore_member(db, member_id)
