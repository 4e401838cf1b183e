from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.deps.roles import get_principal, require_access
from app.integrity.policy import Principal
from app.schemas.common_schemas import ApiResponse, GetByIdRequest, ListRequest
from app.schemas.content_schemas import (
    ContentCreate, ContentUpdate, ContentDelete, ContentOut, ContentDetailOut,
)
from app.services import content_service

router = APIRouter(prefix="/contents", tags=["contents"])


@router.post("/create", response_model=ApiResponse[ContentOut])
async def create_content(
    payload: ContentCreate,
    session: AsyncSession = Depends(get_async_session),
    principal: Principal = Depends(require_access("content:create")),
):
    content = await content_service.create_content(session, payload, principal)
    return ApiResponse(message="Content created successfully", object=content)


@router.post("/update", response_model=ApiResponse[ContentOut])
async def update_content(
    payload: ContentUpdate,
    session: AsyncSession = Depends(get_async_session),
    principal: Principal = Depends(require_access("content:update")),
):
    content = await content_service.update_content(session, payload, principal)
    return ApiResponse(message="Content updated successfully", object=content)


@router.post("/get-by-id", response_model=ApiResponse[ContentDetailOut])
async def get_content(
    payload: GetByIdRequest,
    session: AsyncSession = Depends(get_async_session),
    _user=Depends(get_principal),
):
    content = await content_service.get_content(session, payload.id)
    return ApiResponse(message="Content found successfully", object=content)


# Public: no session needed to browse content
@router.post("/list", response_model=ApiResponse[List[ContentOut]])
async def list_contents(
    payload: Optional[ListRequest] = None,
    session: AsyncSession = Depends(get_async_session),
):
    contents = await content_service.list_contents(session, payload.filters if payload else None)
    return ApiResponse(message="Contents list get successfully", object=contents)


@router.post("/delete", response_model=ApiResponse[None])
async def delete_content(
    payload: ContentDelete,
    session: AsyncSession = Depends(get_async_session),
    principal: Principal = Depends(require_access("content:delete")),
):
    await content_service.delete_content(session, payload.content_id, principal)
    return ApiResponse(message="Content deleted successfully")
