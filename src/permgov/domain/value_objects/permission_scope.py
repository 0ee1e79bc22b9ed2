"""Permission scope ranking."""

from enum import IntEnum


class PermissionScope(IntEnum):
    """Ranked scopes. A wider scope covers every narrower one."""

    OWN = 1
    DEPARTMENT = 2
    SCHOOL = 3
    ALL = 4

    @classmethod
    def parse(cls, value: str | None) -> "PermissionScope | None":
        if value is None:
            return None
        return cls.__members__.get(value.upper())


def scope_covers(held: str | None, requested: str | None) -> bool:
    """True if a permission held at scope held satisfies a check at requested.

    requested=None accepts any scope. Scopes outside the ranking only match
    themselves.
    """
    if requested is None or held == requested:
        return True
    held_rank = PermissionScope.parse(held)
    requested_rank = PermissionScope.parse(requested)
    if held_rank is None or requested_rank is None:
        return False
    return held_rank >= requested_rank
