from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import AUTH_RATE_LIMIT
from app.database import get_async_session
from app.limiter import limiter
from app.schemas.common_schemas import ApiResponse
from app.schemas.user_schemas import UserRegister, UserLogin, UserOut
from app.services import user_service

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=ApiResponse[UserOut])
@limiter.limit(AUTH_RATE_LIMIT)
async def register(
    request: Request,
    payload: UserRegister,
    session: AsyncSession = Depends(get_async_session),
):
    user = await user_service.register_user(session, payload)
    return ApiResponse(message="Register Success", object=user)


@router.post("/login", response_model=ApiResponse[str])
@limiter.limit(AUTH_RATE_LIMIT)
async def login(
    request: Request,
    payload: UserLogin,
    session: AsyncSession = Depends(get_async_session),
):
    access_token = await user_service.login(session, payload)
    return ApiResponse(message="Login success", object=access_token)
