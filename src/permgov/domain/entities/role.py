"""Role entity for RBAC."""

from dataclasses import dataclass
from uuid import UUID


@dataclass
class Role:
    """Role - named bundle of permissions. hierarchy_level only orders roles."""

    id: UUID
    code: str
    name: str
    description: str | None = None
    hierarchy_level: int = 0
    is_system_role: bool = False
    is_active: bool = True
