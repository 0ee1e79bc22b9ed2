"""Permission entity - catalog definition of an access right."""

from dataclasses import dataclass
from uuid import UUID


@dataclass
class Permission:
    """Permission - action on a resource within a scope."""

    id: UUID
    code: str
    name: str
    resource: str
    action: str
    scope: str | None = None
    description: str | None = None
    is_system_permission: bool = False
    is_active: bool = True
