from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.deps.roles import get_principal, require_access
from app.schemas.common_schemas import ApiResponse, GetByIdRequest, ListRequest
from app.schemas.theme_schemas import ThemeCreate, ThemeUpdate, ThemeDelete, ThemeOut, ThemeDetailOut
from app.services import theme_service

router = APIRouter(prefix="/themes", tags=["themes"])


@router.post("/create", response_model=ApiResponse[ThemeOut])
async def create_theme(
    payload: ThemeCreate,
    session: AsyncSession = Depends(get_async_session),
    _admin=Depends(require_access("theme:create")),
):
    theme = await theme_service.create_theme(session, payload)
    return ApiResponse(message="Theme create successfully", object=theme)


@router.post("/update", response_model=ApiResponse[ThemeOut])
async def update_theme(
    payload: ThemeUpdate,
    session: AsyncSession = Depends(get_async_session),
    _admin=Depends(require_access("theme:update")),
):
    theme = await theme_service.update_theme(session, payload)
    return ApiResponse(message="Theme update successfully", object=theme)


@router.post("/get-by-id", response_model=ApiResponse[ThemeDetailOut])
async def get_theme(
    payload: GetByIdRequest,
    session: AsyncSession = Depends(get_async_session),
    _user=Depends(get_principal),
):
    theme = await theme_service.get_theme(session, payload.id)
    return ApiResponse(message="Theme found successfully", object=theme)


# Any signed-in user may browse themes
@router.post("/list", response_model=ApiResponse[List[ThemeOut]])
async def list_themes(
    payload: Optional[ListRequest] = None,
    session: AsyncSession = Depends(get_async_session),
    _user=Depends(get_principal),
):
    themes = await theme_service.list_themes(session, payload.filters if payload else None)
    return ApiResponse(message="Themes list get successfully", object=themes)


@router.post("/delete", response_model=ApiResponse[None])
async def delete_theme(
    payload: ThemeDelete,
    session: AsyncSession = Depends(get_async_session),
    _admin=Depends(require_access("theme:delete")),
):
    await theme_service.delete_theme(session, payload.theme_id)
    return ApiResponse(message="Theme deleted successfully")
