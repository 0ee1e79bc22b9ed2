"""Where an effective permission comes from."""

from enum import StrEnum


class PermissionSource(StrEnum):
    """Source of an effective permission entry."""

    USER = "user"
    ROLE = "role"
