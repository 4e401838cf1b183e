import logging
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import atomic
from app.integrity.errors import NotFound, InvalidReference
from app.integrity.guards import delete_content_tree
from app.integrity.policy import Principal, ensure_can_mutate
from app.integrity.references import validate_content_against_theme
from app.models.category_model import Category
from app.models.content_model import Content, ContentType
from app.models.theme_model import Theme
from app.models.user_model import User
from app.schemas.common_schemas import ListFilters
from app.schemas.content_schemas import (
    ContentCreate, ContentUpdate, ContentTypeIn, ContentOut, ContentDetailOut,
    ContentTypeOut, ContentTypeCategoryOut,
)
from app.schemas.theme_schemas import ThemeSummaryOut
from app.schemas.user_schemas import UserSummaryOut
from app.services.listing import build_list_query

logger = logging.getLogger(__name__)

# wire name -> column; creator and theme are exposed without the _id suffix
FIELD_COLUMNS = {
    "id": Content.id,
    "title": Content.title,
    "description": Content.description,
    "image": Content.image,
    "creator": Content.creator_id,
    "theme": Content.theme_id,
}
SORT_COLUMNS = {
    **FIELD_COLUMNS,
    "created_at": Content.created_at,
    "updated_at": Content.updated_at,
}


def content_to_out(c: Content) -> ContentOut:
    return ContentOut(
        id=c.id,
        title=c.title,
        description=c.description,
        image=c.image,
        creator=c.creator_id,
        theme=c.theme_id,
        content_type=list(c.content_type_ids or []),
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


async def get_content_or_fail(session: AsyncSession, content_id: int) -> Content:
    content = await session.get(Content, content_id)
    if content is None:
        logger.error("#getContent# Content not found: %s", content_id)
        raise NotFound("Content not found")
    return content


async def _add_content_type(session: AsyncSession, content_id: int, item: ContentTypeIn) -> ContentType:
    content_type = ContentType(content_id=content_id, category_id=item.category, data=item.data)
    session.add(content_type)
    await session.flush()
    return content_type


async def create_content(session: AsyncSession, payload: ContentCreate, principal: Principal) -> ContentOut:
    async with atomic(session, "create content"):
        theme = await validate_content_against_theme(
            session, payload.theme, [d.category for d in payload.data]
        )

        content = Content(
            title=payload.title,
            description=payload.description,
            image=payload.image,
            creator_id=principal.id,
            theme_id=theme.id,
            content_type_ids=[],
        )
        session.add(content)
        await session.flush()

        content_type_ids = []
        for item in payload.data:
            content_type = await _add_content_type(session, content.id, item)
            content_type_ids.append(content_type.id)

        content.content_type_ids = content_type_ids

    await session.refresh(content)
    return content_to_out(content)


async def _reconcile_content_types(
    session: AsyncSession, content: Content, items: List[ContentTypeIn]
) -> List[int]:
    """
    Diff-based sync of a content's children: update the items that carry an
    id, create the ones that don't, drop whatever was stored but not sent.
    """
    stored = {
        ct.id: ct
        for ct in (
            await session.execute(select(ContentType).where(ContentType.content_id == content.id))
        ).scalars().all()
    }

    kept: List[int] = []
    for item in items:
        if item.id is not None:
            content_type = stored.get(item.id)
            if content_type is None:
                logger.error(
                    "#updateContent# Content type %s does not belong to content %s", item.id, content.id
                )
                raise InvalidReference("Content type does not belong to this content")
            content_type.category_id = item.category
            content_type.data = item.data
        else:
            content_type = await _add_content_type(session, content.id, item)

        if content_type.id not in kept:
            kept.append(content_type.id)

    stale = [ct_id for ct_id in stored if ct_id not in kept]
    if stale:
        await session.execute(delete(ContentType).where(ContentType.id.in_(stale)))

    return kept


async def update_content(session: AsyncSession, payload: ContentUpdate, principal: Principal) -> ContentOut:
    async with atomic(session, "update content"):
        content = await get_content_or_fail(session, payload.content_id)
        theme = await validate_content_against_theme(
            session, payload.theme, [d.category for d in payload.data]
        )
        ensure_can_mutate(principal, content.creator_id, "Cannot edit content")

        kept = await _reconcile_content_types(session, content, payload.data)

        content.title = payload.title
        content.description = payload.description
        content.image = payload.image
        content.theme_id = theme.id
        content.content_type_ids = kept

    await session.refresh(content)
    return content_to_out(content)


async def delete_content(session: AsyncSession, content_id: int, principal: Principal) -> None:
    async with atomic(session, "delete content"):
        content = await get_content_or_fail(session, content_id)
        ensure_can_mutate(principal, content.creator_id, "Cannot delete content")
        await delete_content_tree(session, [content.id])


async def get_content(session: AsyncSession, content_id: int) -> ContentDetailOut:
    content = await get_content_or_fail(session, content_id)

    theme = await session.get(Theme, content.theme_id)
    creator = await session.get(User, content.creator_id)
    if theme is None or creator is None:
        logger.error(
            "#getContent# Dangling reference on content %s (theme=%s, creator=%s)",
            content.id, content.theme_id, content.creator_id,
        )
        raise NotFound("Content not found")

    content_types = (
        await session.execute(select(ContentType).where(ContentType.content_id == content.id))
    ).scalars().all()
    category_ids = {ct.category_id for ct in content_types}
    categories = {
        c.id: c
        for c in (
            await session.execute(select(Category).where(Category.id.in_(category_ids)))
        ).scalars().all()
    }

    # keep the order recorded on the content itself
    position = {ct_id: i for i, ct_id in enumerate(content.content_type_ids or [])}
    ordered = sorted(content_types, key=lambda ct: position.get(ct.id, len(position)))

    expanded = []
    for ct in ordered:
        category = categories.get(ct.category_id)
        expanded.append(ContentTypeOut(
            id=ct.id,
            content=ct.content_id,
            category=ContentTypeCategoryOut(
                id=category.id, name=category.name, allow_types=list(category.allow_types or [])
            ) if category else None,
            data=ct.data,
        ))

    return ContentDetailOut(
        id=content.id,
        title=content.title,
        description=content.description,
        image=content.image,
        creator=UserSummaryOut(id=creator.id, username=creator.username, email=creator.email),
        theme=ThemeSummaryOut(id=theme.id, name=theme.name),
        content_type=expanded,
        created_at=content.created_at,
        updated_at=content.updated_at,
    )


async def list_contents(session: AsyncSession, filters: Optional[ListFilters]) -> List[ContentOut]:
    stmt = build_list_query(
        Content,
        filters,
        search_columns=[Content.title],
        sort_columns=SORT_COLUMNS,
        field_columns=FIELD_COLUMNS,
    )
    rows = (await session.execute(stmt)).scalars().all()
    return [content_to_out(c) for c in rows]
