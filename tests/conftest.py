"""Pytest configuration and shared fixtures."""
# ruff: noqa: E402

import os

# Must be set before anything under app/ reads its configuration
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-0123456789"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from passlib.hash import bcrypt
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, enable_sqlite_foreign_keys, get_async_session
from app.integrity.policy import Principal
from app.main import app
from app.models.user_model import User, Role
from app.schemas.category_schemas import CategoryCreate
from app.schemas.content_schemas import ContentCreate, ContentTypeIn
from app.schemas.theme_schemas import ThemeCreate
from app.services import category_service, content_service, theme_service
from app.utils.token_utils import create_access_token

DEFAULT_PASSWORD = "Secret#123"


# ==================== Store ====================


@pytest_asyncio.fixture
async def engine():
    """A fresh in-memory database per test."""
    eng = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    enable_sqlite_foreign_keys(eng)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client bound to the app with the store dependency pointed at the test database."""

    async def _override_session():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_async_session] = _override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


# ==================== Factories ====================


async def make_user(
    session: AsyncSession,
    username: str,
    role: Role = Role.READER,
    *,
    password: str = DEFAULT_PASSWORD,
    hashed: bool = False,
) -> Principal:
    """Insert a user directly and return it as a principal (ids survive rollbacks)."""
    user = User(
        username=username,
        email=f"{username}@example.com",
        password=bcrypt.hash(password) if hashed else password,
        role=role.value,
    )
    session.add(user)
    await session.commit()
    return Principal(id=user.id, role=user.role)


async def make_category(session: AsyncSession, name: str, allow_types=("image",)) -> int:
    out = await category_service.create_category(
        session, CategoryCreate(name=name, allow_types=list(allow_types))
    )
    return out.id


async def make_theme(session: AsyncSession, name: str, categories) -> int:
    out = await theme_service.create_theme(session, ThemeCreate(name=name, categories=list(categories)))
    return out.id


async def make_content(
    session: AsyncSession,
    principal: Principal,
    theme_id: int,
    items,
    *,
    title: str = "Post",
):
    payload = ContentCreate(
        title=title,
        description="A description",
        image="images/cover.png",
        theme=theme_id,
        data=[ContentTypeIn(category=category, data=data) for category, data in items],
    )
    return await content_service.create_content(session, payload, principal)


async def count_rows(session: AsyncSession, column, *where) -> int:
    stmt = select(func.count(column))
    if where:
        stmt = stmt.where(*where)
    return (await session.execute(stmt)).scalar_one()


def auth_headers(principal: Principal, username: str = "someone") -> dict:
    token = create_access_token(User(id=principal.id, username=username, role=principal.role))
    return {"Authorization": f"Bearer {token}"}
