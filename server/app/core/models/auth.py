from typing import Optional, Literal
from uuid import UUID
from pydantic import BaseModel

UserRole = Literal["admin", "owner", "manager", "superintendent", "project_manager", "field"]

# Roles that see the safety dashboard and classify incidents
SAFETY_MANAGER_ROLES: tuple[str, ...] = ("admin", "owner", "manager", "superintendent", "project_manager")


class TokenPayload(BaseModel):
    sub: str  # user_id
    email: str
    role: UserRole
    workspace_id: str
    exp: int


class CurrentUser(BaseModel):
    id: UUID
    email: str
    role: UserRole
    workspace_id: UUID
    full_name: Optional[str] = None

    @property
    def is_safety_manager(self) -> bool:
        return self.role in SAFETY_MANAGER_ROLES
