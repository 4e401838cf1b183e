import logging
from typing import List, Optional, Sequence

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import atomic
from app.integrity.errors import NotFound
from app.integrity.guards import count_contents_using_theme, guard_delete
from app.integrity.references import theme_category_ids, validate_theme_categories
from app.models.category_model import Category
from app.models.theme_model import Theme, ThemeCategory
from app.schemas.common_schemas import ListFilters
from app.schemas.theme_schemas import ThemeCreate, ThemeUpdate, ThemeOut, ThemeDetailOut
from app.services.category_service import category_to_out
from app.services.listing import build_list_query

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "id": Theme.id,
    "name": Theme.name,
    "created_at": Theme.created_at,
    "updated_at": Theme.updated_at,
}


def theme_to_out(t: Theme, category_ids: Sequence[int]) -> ThemeOut:
    return ThemeOut(
        id=t.id,
        name=t.name,
        categories=list(category_ids),
        created_at=t.created_at,
        updated_at=t.updated_at,
    )


async def get_theme_or_fail(session: AsyncSession, theme_id: int) -> Theme:
    theme = await session.get(Theme, theme_id)
    if theme is None:
        logger.error("#getTheme# Theme not found: %s", theme_id)
        raise NotFound("Theme not found")
    return theme


async def _link_categories(session: AsyncSession, theme_id: int, category_ids: Sequence[int]) -> None:
    await session.execute(delete(ThemeCategory).where(ThemeCategory.theme_id == theme_id))
    session.add_all(
        ThemeCategory(theme_id=theme_id, category_id=category_id, position=position)
        for position, category_id in enumerate(category_ids)
    )


async def create_theme(session: AsyncSession, payload: ThemeCreate) -> ThemeOut:
    async with atomic(session, "create theme"):
        await validate_theme_categories(session, payload.categories)
        theme = Theme(name=payload.name)
        session.add(theme)
        await session.flush()
        await _link_categories(session, theme.id, payload.categories)
    await session.refresh(theme)
    return theme_to_out(theme, payload.categories)


async def update_theme(session: AsyncSession, payload: ThemeUpdate) -> ThemeOut:
    async with atomic(session, "update theme"):
        theme = await get_theme_or_fail(session, payload.theme_id)
        await validate_theme_categories(session, payload.categories)
        theme.name = payload.name
        await _link_categories(session, theme.id, payload.categories)
    await session.refresh(theme)
    return theme_to_out(theme, payload.categories)


async def delete_theme(session: AsyncSession, theme_id: int) -> None:
    async with atomic(session, "delete theme"):
        theme = await get_theme_or_fail(session, theme_id)
        guard_delete("theme", await count_contents_using_theme(session, theme.id))
        await session.execute(delete(ThemeCategory).where(ThemeCategory.theme_id == theme.id))
        await session.delete(theme)


async def get_theme(session: AsyncSession, theme_id: int) -> ThemeDetailOut:
    theme = await get_theme_or_fail(session, theme_id)
    category_ids = await theme_category_ids(session, theme.id)

    rows = (await session.execute(select(Category).where(Category.id.in_(category_ids)))).scalars().all()
    by_id = {c.id: c for c in rows}

    return ThemeDetailOut(
        id=theme.id,
        name=theme.name,
        categories=[category_to_out(by_id[cid]) for cid in category_ids if cid in by_id],
        created_at=theme.created_at,
        updated_at=theme.updated_at,
    )


async def list_themes(session: AsyncSession, filters: Optional[ListFilters]) -> List[ThemeOut]:
    stmt = build_list_query(
        Theme,
        filters,
        search_columns=[Theme.name],
        sort_columns=SORT_COLUMNS,
    )
    themes = (await session.execute(stmt)).scalars().all()
    if not themes:
        return []

    links = (
        await session.execute(
            select(ThemeCategory)
            .where(ThemeCategory.theme_id.in_([t.id for t in themes]))
            .order_by(ThemeCategory.theme_id, ThemeCategory.position)
        )
    ).scalars().all()
    categories_by_theme = {}
    for link in links:
        categories_by_theme.setdefault(link.theme_id, []).append(link.category_id)

    return [theme_to_out(t, categories_by_theme.get(t.id, [])) for t in themes]
