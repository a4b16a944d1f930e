from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from membership.core import ROLE_ADMIN, ROLE_MEMBER, create_access_token, hash_password, limiter
from membership.db.models import Member
from membership.db.session import Base
from membership.dependencies import get_db
from membership.main import app
from membership.providers import EmailConfigError, EmailServiceError
from membership.services.members import get_or_create_role

TEST_PASSWORD = "Bunker2024"


class FakeEmailProvider:
    """Records outgoing messages instead of calling SendGrid."""

    sender_address = "verein@bunkermuseum.example.org"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send(self, message):
        if self.fail:
            raise EmailServiceError("Email service unavailable.")
        self.sent.append(message)
        return f"msg-{len(self.sent)}"


def _not_configured():
    raise EmailConfigError("Email service not configured.")


@pytest.fixture(autouse=True)
def email_not_configured(monkeypatch):
    """Email is unconfigured unless a test installs a provider."""
    monkeypatch.setattr("membership.services.members.get_email_provider", _not_configured)
    monkeypatch.setattr("membership.services.emails.get_email_provider", _not_configured)


@pytest.fixture
def email_provider(monkeypatch) -> FakeEmailProvider:
    provider = FakeEmailProvider()
    monkeypatch.setattr("membership.services.members.get_email_provider", lambda: provider)
    monkeypatch.setattr("membership.services.emails.get_email_provider", lambda: provider)
    return provider


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def make_member(
    db: AsyncSession,
    name: str,
    email: str,
    *,
    phone: str | None = None,
    of_mg: bool = False,
    admin: bool = False,
    deleted: bool = False,
    password: str | None = TEST_PASSWORD,
) -> Member:
    member = Member(
        name=name,
        email=email,
        phone=phone,
        of_mg=of_mg,
        hashed_password=hash_password(password) if password else None,
        deleted_at=datetime.now(timezone.utc) if deleted else None,
    )
    roles = [await get_or_create_role(db, ROLE_MEMBER)]
    if admin:
        roles.append(await get_or_create_role(db, ROLE_ADMIN))
    member.roles = roles
    db.add(member)
    await db.commit()
    return member


def auth_headers(member: Member) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=str(member.id))}"}


@pytest_asyncio.fixture
async def admin(db) -> Member:
    return await make_member(db, "Museum Admin", "admin@bunkermuseum.example.org", admin=True, of_mg=True)


@pytest_asyncio.fixture
async def admin_headers(admin) -> dict[str, str]:
    return auth_headers(admin)
