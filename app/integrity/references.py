"""
Foreign-key style checks run before a theme or content is written.

Themes must only name categories that exist; content must share at least one
category with the theme it is filed under.
"""
import logging
from typing import Iterable, List, Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.integrity.errors import InvalidReference, ThemeNotFound, CategoryNotAllowed
from app.models.category_model import Category
from app.models.theme_model import Theme, ThemeCategory

logger = logging.getLogger(__name__)


async def theme_category_ids(session: AsyncSession, theme_id: int) -> List[int]:
    """Category ids a theme permits, in the order they were submitted."""
    stmt = (
        select(ThemeCategory.category_id)
        .where(ThemeCategory.theme_id == theme_id)
        .order_by(ThemeCategory.position)
    )
    return list((await session.execute(stmt)).scalars().all())


async def validate_theme_categories(session: AsyncSession, category_ids: Sequence[int]) -> None:
    """
    All-or-nothing existence check: the number of stored categories matching
    the ids must equal the number of ids submitted. Duplicated ids therefore
    fail too.
    """
    ids = list(category_ids)
    if not ids:
        return

    count_stmt = select(func.count(Category.id)).where(Category.id.in_(ids))
    existing = (await session.execute(count_stmt)).scalar_one()
    if existing != len(ids):
        logger.error("Some categories don't exist. Submitted: %s, found: %s", ids, existing)
        raise InvalidReference("Some categories don't exist")


async def validate_content_against_theme(
    session: AsyncSession,
    theme_id: int,
    submitted_category_ids: Iterable[int],
) -> Theme:
    theme = await session.get(Theme, theme_id)
    if theme is None:
        logger.error("Theme not found: %s", theme_id)
        raise ThemeNotFound()

    allowed = await theme_category_ids(session, theme.id)
    submitted = {int(c) for c in submitted_category_ids}

    # A single shared category is enough for the whole submission to pass
    if not any(category_id in submitted for category_id in allowed):
        logger.error(
            "Some categories are not allowed. Submitted: %s, theme %s allows: %s",
            sorted(submitted), theme.id, allowed,
        )
        raise CategoryNotAllowed()

    return theme
