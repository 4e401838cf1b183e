import logging
from typing import List, Optional

from passlib.hash import bcrypt
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import atomic
from app.integrity.errors import NotFound, Forbidden, AlreadyExists, MalformedInput, InvalidCredentials
from app.integrity.guards import cascade_delete_user
from app.integrity.policy import Principal, ensure_can_mutate
from app.models.user_model import User, Role
from app.schemas.common_schemas import ListFilters
from app.schemas.user_schemas import UserRegister, UserLogin, UserUpdate, UserOut, PASSWORD_RE
from app.services.listing import build_list_query
from app.utils.token_utils import create_access_token

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "id": User.id,
    "username": User.username,
    "email": User.email,
    "role": User.role,
    "created_at": User.created_at,
    "updated_at": User.updated_at,
}


def user_to_out(u: User) -> UserOut:
    return UserOut(
        id=u.id,
        username=u.username,
        email=u.email,
        role=u.role,
        created_at=u.created_at,
        updated_at=u.updated_at,
    )


async def get_user_or_fail(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if user is None:
        logger.error("#getUser# User not found: %s", user_id)
        raise NotFound("User not found")
    return user


async def _ensure_unique(
    session: AsyncSession, username: Optional[str], email: Optional[str], exclude_id: Optional[int] = None
) -> None:
    conditions = []
    if username is not None:
        conditions.append(User.username == username)
    if email is not None:
        conditions.append(func.lower(User.email) == email)
    if not conditions:
        return

    stmt = select(func.count(User.id)).where(or_(*conditions))
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    if (await session.execute(stmt)).scalar_one():
        logger.error("#register# User already exists: %s / %s", username, email)
        raise AlreadyExists("User already exists")


async def register_user(session: AsyncSession, payload: UserRegister) -> UserOut:
    if payload.password != payload.confirm_password:
        logger.error("#register# Passwords not match")
        raise MalformedInput("Passwords not match")

    if not PASSWORD_RE.match(payload.password):
        logger.error("#register# Password not match with REGEX")
        raise MalformedInput("Password does not comply with the rules")

    username_norm = payload.username.strip()
    email_norm = str(payload.email).strip().lower()

    async with atomic(session, "register"):
        await _ensure_unique(session, username_norm, email_norm)
        user = User(
            username=username_norm,
            email=email_norm,
            password=bcrypt.hash(payload.password),
            role=Role.READER.value,
        )
        session.add(user)

    await session.refresh(user)
    return user_to_out(user)


async def login(session: AsyncSession, payload: UserLogin) -> str:
    identifier = payload.username.strip()
    result = await session.execute(
        select(User).where(
            or_(User.username == identifier, func.lower(User.email) == identifier.lower())
        )
    )
    user = result.scalars().first()

    if user is None:
        logger.error("#login# User not found")
        raise InvalidCredentials()
    if not bcrypt.verify(payload.password, user.password):
        logger.error("#login# Password not match")
        raise InvalidCredentials()

    return create_access_token(user)


async def update_user(session: AsyncSession, payload: UserUpdate, principal: Principal) -> UserOut:
    async with atomic(session, "update user"):
        user = await get_user_or_fail(session, payload.user_id)
        ensure_can_mutate(principal, user.id, "Cannot edit user")

        if payload.role is not None and payload.role.value != user.role and not principal.is_admin:
            logger.error(
                "#updateUser# User %s tried to change role of %s to %s",
                principal.id, user.id, payload.role.value,
            )
            raise Forbidden("Only an admin can change roles")

        email_norm = str(payload.email).strip().lower() if payload.email is not None else None
        username_norm = payload.username.strip() if payload.username is not None else None
        await _ensure_unique(session, username_norm, email_norm, exclude_id=user.id)

        if payload.role is not None:
            user.role = payload.role.value
        if username_norm is not None:
            user.username = username_norm
        if email_norm is not None:
            user.email = email_norm
        if payload.password is not None:
            user.password = bcrypt.hash(payload.password)

    await session.refresh(user)
    return user_to_out(user)


async def delete_user(session: AsyncSession, user_id: int) -> None:
    async with atomic(session, "delete user"):
        user = await get_user_or_fail(session, user_id)
        await cascade_delete_user(session, user.id)


async def get_user(session: AsyncSession, user_id: int) -> UserOut:
    return user_to_out(await get_user_or_fail(session, user_id))


async def list_users(session: AsyncSession, filters: Optional[ListFilters]) -> List[UserOut]:
    stmt = build_list_query(
        User,
        filters,
        search_columns=[User.username, User.email],
        sort_columns=SORT_COLUMNS,
    )
    rows = (await session.execute(stmt)).scalars().all()
    return [user_to_out(u) for u in rows]
