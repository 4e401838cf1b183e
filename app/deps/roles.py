# app/deps/roles.py
from fastapi import Depends

from app.integrity.policy import Principal, ensure_role_for
from app.utils.token_utils import get_current_principal


async def get_principal(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Session-only gate: any role passes, the caller's id and stored role come back."""
    return principal


def require_access(action: str):
    """
    Builds a dependency that checks ROLE_TABLE for `action` before the route runs.
    Raises Forbidden (403) when the caller's role is not listed.
    """

    async def _check(principal: Principal = Depends(get_current_principal)) -> Principal:
        ensure_role_for(principal, action)
        return principal

    return _check
