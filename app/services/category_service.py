import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.database import atomic
from app.integrity.errors import NotFound
from app.integrity.guards import (
    count_content_types_using_category,
    count_themes_using_category,
    guard_delete,
)
from app.models.category_model import Category
from app.schemas.category_schemas import CategoryCreate, CategoryUpdate, CategoryOut
from app.schemas.common_schemas import ListFilters
from app.services.listing import build_list_query

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "id": Category.id,
    "name": Category.name,
    "created_at": Category.created_at,
    "updated_at": Category.updated_at,
}


def category_to_out(c: Category) -> CategoryOut:
    return CategoryOut(
        id=c.id,
        name=c.name,
        allow_types=list(c.allow_types or []),
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


async def get_category_or_fail(session: AsyncSession, category_id: int) -> Category:
    category = await session.get(Category, category_id)
    if category is None:
        logger.error("#getCategory# Category not found: %s", category_id)
        raise NotFound("Category not found")
    return category


async def get_category(session: AsyncSession, category_id: int) -> CategoryOut:
    return category_to_out(await get_category_or_fail(session, category_id))


async def create_category(session: AsyncSession, payload: CategoryCreate) -> CategoryOut:
    category = Category(name=payload.name, allow_types=list(payload.allow_types))
    async with atomic(session, "create category"):
        session.add(category)
    await session.refresh(category)
    return category_to_out(category)


async def update_category(session: AsyncSession, payload: CategoryUpdate) -> CategoryOut:
    async with atomic(session, "update category"):
        category = await get_category_or_fail(session, payload.category_id)
        category.name = payload.name
        category.allow_types = list(payload.allow_types)
    await session.refresh(category)
    return category_to_out(category)


async def delete_category(session: AsyncSession, category_id: int) -> None:
    async with atomic(session, "delete category"):
        category = await get_category_or_fail(session, category_id)
        dependents = (
            await count_themes_using_category(session, category.id)
            + await count_content_types_using_category(session, category.id)
        )
        guard_delete("category", dependents)
        await session.delete(category)


async def list_categories(session: AsyncSession, filters: Optional[ListFilters]) -> List[CategoryOut]:
    stmt = build_list_query(
        Category,
        filters,
        search_columns=[Category.name],
        sort_columns=SORT_COLUMNS,
    )
    rows = (await session.execute(stmt)).scalars().all()
    return [category_to_out(c) for c in rows]
