"""Member administration and ranked member search."""

import logging
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from membership.core import ROLE_MEMBER, get_settings, hash_token, new_setup_token
from membership.db.models import Email, Member, Role
from membership.providers import EmailConfigError, EmailServiceError, OutgoingEmail, get_email_provider
from membership.schemas import (
    MemberCreateRequest,
    MemberResponse,
    MemberSearchHit,
    PageResponse,
    PatchMemberRequest,
)
from membership.serializers import member_to_response, search_result_to_hit
from membership.services.errors import InvalidArgumentError
from membership.services.paging import check_page_request
from membership.services.search import (
    ActiveStatus,
    SearchPage,
    SearchResult,
    parse_status,
    ranked_member_ids,
    search,
    total_pages,
)
from membership.utils import normalize_email

logger = logging.getLogger(__name__)

PASSWORD_SETUP_SUBJECT = "Set up your Bunkermuseum member account"

_PATCHABLE_FIELDS = (
    "name",
    "phone",
    "salutation",
    "academic_title",
    "rank",
    "birthday",
    "street",
    "city",
    "postal_code",
    "country",
    "of_mg",
)


def _status_filter(stmt, active_status: ActiveStatus):
    if active_status is ActiveStatus.ACTIVE:
        return stmt.where(Member.deleted_at.is_(None))
    if active_status is ActiveStatus.DELETED:
        return stmt.where(Member.deleted_at.is_not(None))
    return stmt


def _pushdown_enabled(db: AsyncSession) -> bool:
    if not get_settings().member_search_pushdown:
        return False
    return db.get_bind().dialect.name == "postgresql"


async def _load_candidates(db: AsyncSession, active_status: ActiveStatus) -> list[Member]:
    result = await db.execute(_status_filter(select(Member), active_status))
    return list(result.scalars().all())


async def _search_in_database(
    db: AsyncSession,
    query: str,
    active_status: ActiveStatus,
    page: int,
    size: int,
    threshold: float,
) -> SearchPage:
    rows, total = await ranked_member_ids(db, query, active_status, page, size, threshold)
    members: dict[str, Member] = {}
    if rows:
        result = await db.execute(select(Member).where(Member.id.in_([r[0] for r in rows])))
        members = {str(m.id): m for m in result.scalars().all()}
    content = [
        SearchResult(record=members[member_id], tier=tier, score=score)
        for member_id, tier, score in rows
        if member_id in members
    ]
    return SearchPage(
        content=content,
        page_number=page,
        page_size=size,
        total_elements=total,
        total_pages=total_pages(total, size),
    )


async def search_members(
    db: AsyncSession,
    query: str | None,
    active_status: ActiveStatus | str | None,
    page: int,
    size: int,
) -> SearchPage:
    """Ranked fuzzy search over name, email and phone.

    The query is stripped first; a blank query matches nothing. Ranking runs in
    Postgres when push-down is enabled and the session is bound to Postgres,
    otherwise in-process over the status-filtered members.
    """
    if query is None:
        raise InvalidArgumentError("Search query must not be null")
    check_page_request(page, size)
    active_status = parse_status(active_status)
    query = query.strip()
    threshold = get_settings().member_search_threshold

    logger.debug("Searching members query=%r status=%s page=%s size=%s", query, active_status.value, page, size)
    if not query:
        return SearchPage(content=[], page_number=page, page_size=size, total_elements=0, total_pages=0)
    if _pushdown_enabled(db):
        return await _search_in_database(db, query, active_status, page, size, threshold)
    candidates = await _load_candidates(db, active_status)
    return search(query, active_status, page, size, candidates, threshold)


async def search_member_hits(
    db: AsyncSession,
    query: str | None,
    active_status: ActiveStatus | str | None,
    page: int,
    size: int,
) -> PageResponse[MemberSearchHit]:
    result = await search_members(db, query, active_status, page, size)
    return PageResponse[MemberSearchHit].of(
        [search_result_to_hit(r) for r in result.content],
        page,
        size,
        result.total_elements,
    )


async def list_members(
    db: AsyncSession,
    page: int,
    size: int,
    search_query: str | None = None,
    active_status: ActiveStatus | str | None = None,
) -> PageResponse[MemberResponse]:
    """Paged member listing; ranked by relevance when a search term is given, by name otherwise."""
    check_page_request(page, size)
    active_status = parse_status(active_status)
    if search_query and search_query.strip():
        result = await search_members(db, search_query, active_status, page, size)
        return PageResponse[MemberResponse].of(
            [member_to_response(r.record) for r in result.content],
            page,
            size,
            result.total_elements,
        )

    count_stmt = _status_filter(select(func.count()).select_from(Member), active_status)
    total = (await db.execute(count_stmt)).scalar_one()
    stmt = (
        _status_filter(select(Member), active_status)
        .order_by(Member.name.asc(), Member.id.asc())
        .offset(page * size)
        .limit(size)
    )
    members = (await db.execute(stmt)).scalars().all()
    return PageResponse[MemberResponse].of([member_to_response(m) for m in members], page, size, total)


async def get_member_or_404(db: AsyncSession, member_id: str) -> Member:
    try:
        uuid.UUID(str(member_id))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found") from None
    result = await db.execute(select(Member).where(Member.id == member_id))
    member = result.scalar_one_or_none()
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    return member


async def email_taken(db: AsyncSession, email: str, exclude_id: str | None = None) -> bool:
    stmt = select(Member.id).where(func.lower(Member.email) == email)
    if exclude_id:
        stmt = stmt.where(Member.id != exclude_id)
    return (await db.execute(stmt)).first() is not None


async def get_or_create_role(db: AsyncSession, name: str) -> Role:
    result = await db.execute(select(Role).where(Role.name == name))
    role = result.scalar_one_or_none()
    if not role:
        role = Role(name=name)
        db.add(role)
        await db.flush()
    return role


def _password_setup_text(name: str, link: str, hours: int) -> str:
    return (
        f"Hello {name},\n\n"
        "an account has been created for you in the Bunkermuseum member area.\n\n"
        f"Set your password here: {link}\n\n"
        f"The link expires in {hours} hours."
    )


async def _send_password_setup_email(db: AsyncSession, member: Member) -> None:
    try:
        provider = get_email_provider()
    except EmailConfigError:
        logger.info("Password setup email skipped for member %s; email not configured.", member.id)
        return

    settings = get_settings()
    hours = settings.password_setup_expire_hours
    token = new_setup_token()
    member.password_setup_token_hash = hash_token(token)
    member.password_setup_expires_at = datetime.now(timezone.utc) + timedelta(hours=hours)
    await db.flush()

    base = settings.password_setup_url_base
    link = f"{base.rstrip('/')}?token={token}" if base else token

    try:
        await provider.send(
            OutgoingEmail(
                to=member.email,
                subject=PASSWORD_SETUP_SUBJECT,
                text=_password_setup_text(member.name, link, hours),
            )
        )
    except EmailServiceError:
        member.password_setup_token_hash = None
        member.password_setup_expires_at = None
        logger.warning("Failed to send password setup email for member %s", member.id)
        return

    # The log keeps the message without the secret link.
    db.add(
        Email(
            from_address=provider.sender_address,
            to_address=member.email,
            subject=PASSWORD_SETUP_SUBJECT,
            content=_password_setup_text(member.name, "[password setup link]", hours),
            member_id=None,
        )
    )


async def create_member(db: AsyncSession, body: MemberCreateRequest) -> MemberResponse:
    email = normalize_email(body.email)
    if await email_taken(db, email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    fields = body.model_dump(exclude={"email"})
    member = Member(email=email, **fields)
    member.roles = [await get_or_create_role(db, ROLE_MEMBER)]
    db.add(member)
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered") from None

    await _send_password_setup_email(db, member)
    logger.info("Created member %s", member.id)
    return member_to_response(member)


async def update_member(db: AsyncSession, member_id: str, body: PatchMemberRequest) -> MemberResponse:
    member = await get_member_or_404(db, member_id)
    patch = body.model_dump(exclude_unset=True)

    if patch.get("email") is not None:
        email = normalize_email(patch["email"])
        if email != member.email and await email_taken(db, email, exclude_id=member.id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
        member.email = email
    for field in _PATCHABLE_FIELDS:
        if field in patch:
            if field in ("name", "of_mg") and patch[field] is None:
                continue
            setattr(member, field, patch[field])

    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered") from None
    return member_to_response(member)


async def delete_member(db: AsyncSession, member_id: str) -> MemberResponse:
    """Soft delete; deleting an already deleted member is a no-op."""
    member = await get_member_or_404(db, member_id)
    if member.deleted_at is None:
        member.deleted_at = datetime.now(timezone.utc)
        await db.flush()
        logger.info("Soft-deleted member %s", member.id)
    return member_to_response(member)


async def restore_member(db: AsyncSession, member_id: str) -> MemberResponse:
    member = await get_member_or_404(db, member_id)
    if member.deleted_at is not None:
        member.deleted_at = None
        await db.flush()
        logger.info("Restored member %s", member.id)
    return member_to_response(member)


class MemberService:
    """Facade for member operations."""

    @staticmethod
    async def list_members(
        db: AsyncSession,
        page: int,
        size: int,
        search_query: str | None = None,
        active_status: str | None = None,
    ) -> PageResponse[MemberResponse]:
        return await list_members(db, page, size, search_query, active_status)

    @staticmethod
    async def search(
        db: AsyncSession,
        query: str | None,
        active_status: str | None,
        page: int,
        size: int,
    ) -> PageResponse[MemberSearchHit]:
        return await search_member_hits(db, query, active_status, page, size)

    @staticmethod
    async def get_member(db: AsyncSession, member_id: str) -> MemberResponse:
        return member_to_response(await get_member_or_404(db, member_id))

    @staticmethod
    async def create_member(db: AsyncSession, body: MemberCreateRequest) -> MemberResponse:
        return await create_member(db, body)

    @staticmethod
    async def update_member(db: AsyncSession, member_id: str, body: PatchMemberRequest) -> MemberResponse:
        return await update_member(db, member_id, body)

    @staticmethod
    async def delete_member(db: AsyncSession, member_id: str) -> MemberResponse:
        return await delete_member(db, member_id)

    @staticmethod
    async def restore_member(db: AsyncSession, member_id: str) -> MemberResponse:
        return await restore_member(db, member_id)


member_service = MemberService()
