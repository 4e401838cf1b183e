from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.deps.roles import get_principal, require_access
from app.integrity.policy import Principal
from app.schemas.common_schemas import ApiResponse, GetByIdRequest, ListRequest
from app.schemas.user_schemas import UserUpdate, UserDelete, UserOut
from app.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


# Ownership (self or ADMIN) is enforced by the service, not the role table
@router.post("/update", response_model=ApiResponse[UserOut])
async def update_user(
    payload: UserUpdate,
    session: AsyncSession = Depends(get_async_session),
    principal: Principal = Depends(get_principal),
):
    user = await user_service.update_user(session, payload, principal)
    return ApiResponse(message="User update successfully", object=user)


@router.post("/get-by-id", response_model=ApiResponse[UserOut])
async def get_user(
    payload: GetByIdRequest,
    session: AsyncSession = Depends(get_async_session),
    _user=Depends(get_principal),
):
    user = await user_service.get_user(session, payload.id)
    return ApiResponse(message="User found successfully", object=user)


@router.post("/list", response_model=ApiResponse[List[UserOut]])
async def list_users(
    payload: Optional[ListRequest] = None,
    session: AsyncSession = Depends(get_async_session),
    _admin=Depends(require_access("user:list")),
):
    users = await user_service.list_users(session, payload.filters if payload else None)
    return ApiResponse(message="Users list get successfully", object=users)


@router.post("/delete", response_model=ApiResponse[None])
async def delete_user(
    payload: UserDelete,
    session: AsyncSession = Depends(get_async_session),
    _admin=Depends(require_access("user:delete")),
):
    await user_service.delete_user(session, payload.user_id)
    return ApiResponse(message="User deleted successfully")
