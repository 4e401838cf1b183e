from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.deps.roles import get_principal, require_access
from app.schemas.category_schemas import CategoryCreate, CategoryUpdate, CategoryDelete, CategoryOut
from app.schemas.common_schemas import ApiResponse, GetByIdRequest, ListRequest
from app.services import category_service

router = APIRouter(prefix="/categories", tags=["categories"])


@router.post("/create", response_model=ApiResponse[CategoryOut])
async def create_category(
    payload: CategoryCreate,
    session: AsyncSession = Depends(get_async_session),
    _admin=Depends(require_access("category:create")),
):
    category = await category_service.create_category(session, payload)
    return ApiResponse(message="Category create successfully", object=category)


@router.post("/update", response_model=ApiResponse[CategoryOut])
async def update_category(
    payload: CategoryUpdate,
    session: AsyncSession = Depends(get_async_session),
    _admin=Depends(require_access("category:update")),
):
    category = await category_service.update_category(session, payload)
    return ApiResponse(message="Category update successfully", object=category)


@router.post("/get-by-id", response_model=ApiResponse[CategoryOut])
async def get_category(
    payload: GetByIdRequest,
    session: AsyncSession = Depends(get_async_session),
    _user=Depends(get_principal),
):
    category = await category_service.get_category(session, payload.id)
    return ApiResponse(message="Category found successfully", object=category)


@router.post("/list", response_model=ApiResponse[List[CategoryOut]])
async def list_categories(
    payload: Optional[ListRequest] = None,
    session: AsyncSession = Depends(get_async_session),
    _admin=Depends(require_access("category:list")),
):
    categories = await category_service.list_categories(session, payload.filters if payload else None)
    return ApiResponse(message="Categories list get successfully", object=categories)


@router.post("/delete", response_model=ApiResponse[None])
async def delete_category(
    payload: CategoryDelete,
    session: AsyncSession = Depends(get_async_session),
    _admin=Depends(require_access("category:delete")),
):
    await category_service.delete_category(session, payload.category_id)
    return ApiResponse(message="Category deleted successfully")
