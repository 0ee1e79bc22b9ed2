"""Entity types tracked by the change history ledger."""

from enum import StrEnum


class HistoryEntityType(StrEnum):
    """Entity kinds whose mutations are recorded."""

    USER_PERMISSION = "USER_PERMISSION"
    USER_ROLE = "USER_ROLE"
    ROLE_PERMISSION = "ROLE_PERMISSION"
