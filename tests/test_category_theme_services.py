"""Category and theme mutations through the services."""

import pytest

from app.integrity.errors import InvalidReference, NotFound, StillReferenced
from app.models.category_model import Category
from app.models.theme_model import Theme, ThemeCategory
from app.models.user_model import Role
from app.schemas.category_schemas import CategoryUpdate
from app.schemas.theme_schemas import ThemeCreate, ThemeUpdate
from app.services import category_service, content_service, theme_service
from conftest import count_rows, make_category, make_content, make_theme, make_user


# ==================== Categories ====================


@pytest.mark.asyncio
async def test_create_and_update_category(session):
    category_id = await make_category(session, "Photos", ["image"])

    out = await category_service.update_category(
        session, CategoryUpdate(category_id=category_id, name="Media", allow_types=["image", "video"])
    )
    assert out.name == "Media"
    assert out.allow_types == ["image", "video"]
    assert (await category_service.get_category(session, category_id)).name == "Media"


@pytest.mark.asyncio
async def test_update_missing_category(session):
    with pytest.raises(NotFound):
        await category_service.update_category(
            session, CategoryUpdate(category_id=7, name="X", allow_types=[])
        )


@pytest.mark.asyncio
async def test_delete_category_blocked_while_theme_uses_it(session):
    category_id = await make_category(session, "Photos", ["image"])
    await make_theme(session, "Travel", [category_id])

    with pytest.raises(StillReferenced) as exc_info:
        await category_service.delete_category(session, category_id)
    assert exc_info.value.message == "Cannot delete category"

    out = await category_service.get_category(session, category_id)
    assert out.name == "Photos"
    assert out.allow_types == ["image"]


@pytest.mark.asyncio
async def test_delete_category_blocked_while_content_files_items_under_it(session):
    creator = await make_user(session, "carla", Role.CREATOR)
    a = await make_category(session, "A")
    b = await make_category(session, "B")
    theme_id = await make_theme(session, "T", [a, b])
    created = await make_content(session, creator, theme_id, [(a, "x"), (b, "y")])

    # the theme no longer lists B, the content still does
    await theme_service.update_theme(session, ThemeUpdate(theme_id=theme_id, name="T", categories=[a]))

    with pytest.raises(StillReferenced) as exc_info:
        await category_service.delete_category(session, b)
    assert exc_info.value.message == "Cannot delete category"

    assert await count_rows(session, Category.id, Category.id == b) == 1
    detail = await content_service.get_content(session, created.id)
    assert [ct.category.name for ct in detail.content_type] == ["A", "B"]


@pytest.mark.asyncio
async def test_delete_unreferenced_category(session):
    category_id = await make_category(session, "Photos")
    await category_service.delete_category(session, category_id)
    assert await count_rows(session, Category.id) == 0


@pytest.mark.asyncio
async def test_delete_missing_category(session):
    with pytest.raises(NotFound):
        await category_service.delete_category(session, 123)


# ==================== Themes ====================


@pytest.mark.asyncio
async def test_travel_theme_with_existing_categories(session):
    c1 = await make_category(session, "Photos")
    c2 = await make_category(session, "Stories")

    out = await theme_service.create_theme(session, ThemeCreate(name="Travel", categories=[c1, c2]))

    assert out.name == "Travel"
    assert out.categories == [c1, c2]
    assert await count_rows(session, Theme.id) == 1


@pytest.mark.asyncio
async def test_theme_with_unknown_category_writes_nothing(session):
    c1 = await make_category(session, "Photos")

    with pytest.raises(InvalidReference):
        await theme_service.create_theme(session, ThemeCreate(name="Travel", categories=[c1, 99]))

    assert await count_rows(session, Theme.id) == 0
    assert await count_rows(session, ThemeCategory.id) == 0


@pytest.mark.asyncio
async def test_theme_update_with_unknown_category_keeps_old_state(session):
    c1 = await make_category(session, "Photos")
    theme_id = await make_theme(session, "Travel", [c1])

    with pytest.raises(InvalidReference):
        await theme_service.update_theme(
            session, ThemeUpdate(theme_id=theme_id, name="Trips", categories=[c1, 99])
        )

    detail = await theme_service.get_theme(session, theme_id)
    assert detail.name == "Travel"
    assert [c.id for c in detail.categories] == [c1]


@pytest.mark.asyncio
async def test_theme_update_replaces_categories(session):
    c1 = await make_category(session, "Photos")
    c2 = await make_category(session, "Stories")
    theme_id = await make_theme(session, "Travel", [c1])

    out = await theme_service.update_theme(
        session, ThemeUpdate(theme_id=theme_id, name="Trips", categories=[c2, c1])
    )
    assert out.categories == [c2, c1]
    assert await count_rows(session, ThemeCategory.id, ThemeCategory.theme_id == theme_id) == 2


@pytest.mark.asyncio
async def test_update_missing_theme(session):
    with pytest.raises(NotFound):
        await theme_service.update_theme(session, ThemeUpdate(theme_id=5, name="X", categories=[]))


@pytest.mark.asyncio
async def test_get_theme_expands_categories_in_order(session):
    c1 = await make_category(session, "Photos", ["image"])
    c2 = await make_category(session, "Stories", ["text"])
    theme_id = await make_theme(session, "Travel", [c2, c1])

    detail = await theme_service.get_theme(session, theme_id)
    assert [(c.id, c.name, c.allow_types) for c in detail.categories] == [
        (c2, "Stories", ["text"]),
        (c1, "Photos", ["image"]),
    ]


@pytest.mark.asyncio
async def test_list_themes_carries_category_ids(session):
    c1 = await make_category(session, "Photos")
    c2 = await make_category(session, "Stories")
    await make_theme(session, "Travel", [c1, c2])
    await make_theme(session, "Food", [c2])

    themes = {t.name: t.categories for t in await theme_service.list_themes(session, None)}
    assert themes == {"Travel": [c1, c2], "Food": [c2]}


@pytest.mark.asyncio
async def test_delete_theme_blocked_while_content_uses_it(session):
    creator = await make_user(session, "carla", Role.CREATOR)
    c1 = await make_category(session, "Photos")
    theme_id = await make_theme(session, "Travel", [c1])
    await make_content(session, creator, theme_id, [(c1, "x")])

    with pytest.raises(StillReferenced):
        await theme_service.delete_theme(session, theme_id)
    assert await count_rows(session, Theme.id, Theme.id == theme_id) == 1


@pytest.mark.asyncio
async def test_delete_unreferenced_theme_frees_its_categories(session):
    c1 = await make_category(session, "Photos")
    theme_id = await make_theme(session, "Travel", [c1])

    await theme_service.delete_theme(session, theme_id)
    assert await count_rows(session, Theme.id) == 0
    assert await count_rows(session, ThemeCategory.id) == 0

    # nothing references the category any more
    await category_service.delete_category(session, c1)
