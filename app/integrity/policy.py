import logging
from dataclasses import dataclass
from typing import Optional

from app.integrity.errors import Forbidden
from app.models.user_model import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller as seen by the rule engine."""

    id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


ADMIN_ONLY = frozenset({Role.ADMIN.value})
AUTHORS = frozenset({Role.CREATOR.value, Role.ADMIN.value})

# action -> roles allowed to reach the handler at all (ownership is checked later)
ROLE_TABLE = {
    "category:create": ADMIN_ONLY,
    "category:update": ADMIN_ONLY,
    "category:delete": ADMIN_ONLY,
    "category:list": ADMIN_ONLY,
    "theme:create": ADMIN_ONLY,
    "theme:update": ADMIN_ONLY,
    "theme:delete": ADMIN_ONLY,
    "user:list": ADMIN_ONLY,
    "user:delete": ADMIN_ONLY,
    "content:create": AUTHORS,
    "content:update": AUTHORS,
    "content:delete": AUTHORS,
}


def has_role_for(principal: Principal, action: str) -> bool:
    allowed = ROLE_TABLE.get(action)
    if allowed is None:
        # Not in the table: any authenticated principal may proceed
        return True
    return principal.role in allowed


def ensure_role_for(principal: Principal, action: str) -> None:
    if not has_role_for(principal, action):
        logger.error(
            "#checkRole# User tried to access %s. Roles: %s, User: %s",
            action, sorted(ROLE_TABLE[action]), principal.id,
        )
        raise Forbidden("No access")


def can_mutate(principal: Principal, resource_owner_id: Optional[int]) -> bool:
    if principal.is_admin:
        return True
    return resource_owner_id is not None and principal.id == resource_owner_id


def ensure_can_mutate(principal: Principal, resource_owner_id: Optional[int], message: str) -> None:
    if not can_mutate(principal, resource_owner_id):
        logger.error(
            "%s. Owner: %s, User in session: %s", message, resource_owner_id, principal.id
        )
        raise Forbidden(message)
