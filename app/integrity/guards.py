import logging
from typing import List, Sequence

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.integrity.errors import StillReferenced
from app.models.content_model import Content, ContentType
from app.models.theme_model import ThemeCategory
from app.models.user_model import User

logger = logging.getLogger(__name__)


def guard_delete(entity_label: str, dependent_count: int) -> None:
    if dependent_count > 0:
        logger.error(
            "Error delete %s. It is still referenced by %s record(s)", entity_label, dependent_count
        )
        raise StillReferenced(f"Cannot delete {entity_label}")


async def count_themes_using_category(session: AsyncSession, category_id: int) -> int:
    stmt = select(func.count(func.distinct(ThemeCategory.theme_id))).where(
        ThemeCategory.category_id == category_id
    )
    return (await session.execute(stmt)).scalar_one()


async def count_content_types_using_category(session: AsyncSession, category_id: int) -> int:
    # A theme can drop a category while existing content still files items under it
    stmt = select(func.count(ContentType.id)).where(ContentType.category_id == category_id)
    return (await session.execute(stmt)).scalar_one()


async def count_contents_using_theme(session: AsyncSession, theme_id: int) -> int:
    stmt = select(func.count(Content.id)).where(Content.theme_id == theme_id)
    return (await session.execute(stmt)).scalar_one()


async def owned_content_ids(session: AsyncSession, user_id: int) -> List[int]:
    stmt = select(Content.id).where(Content.creator_id == user_id)
    return list((await session.execute(stmt)).scalars().all())


async def delete_content_types_of(session: AsyncSession, content_ids: Sequence[int]) -> int:
    result = await session.execute(
        delete(ContentType).where(ContentType.content_id.in_(content_ids))
    )
    return result.rowcount


async def delete_contents(session: AsyncSession, content_ids: Sequence[int]) -> int:
    result = await session.execute(delete(Content).where(Content.id.in_(content_ids)))
    return result.rowcount


async def delete_content_tree(session: AsyncSession, content_ids: Sequence[int]) -> None:
    """Children first so no ContentType ever points at a missing content."""
    ids = list(content_ids)
    if not ids:
        return
    await delete_content_types_of(session, ids)
    await delete_contents(session, ids)


async def cascade_delete_user(session: AsyncSession, user_id: int) -> None:
    """
    Remove a user together with everything they created.

    Must run inside an atomic unit: the writes are only safe as a whole.
    """
    content_ids = await owned_content_ids(session, user_id)
    if content_ids:
        logger.info("Deleting %s content(s) owned by user %s", len(content_ids), user_id)
    await delete_content_tree(session, content_ids)
    await session.execute(delete(User).where(User.id == user_id))
