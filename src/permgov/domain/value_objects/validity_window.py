"""Temporal validity window value object."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from permgov.domain.exceptions import InvalidInput


def window_contains(start: datetime | None, end: datetime | None, moment: datetime) -> bool:
    """True if moment falls inside [start, end). None bounds are open."""
    if start is not None and moment < start:
        return False
    if end is not None and moment >= end:
        return False
    return True


def earliest(*moments: datetime | None) -> datetime | None:
    """Earliest of the given moments, ignoring None."""
    present = [m for m in moments if m is not None]
    return min(present) if present else None


def next_boundary(moments: Iterable[datetime | None], now: datetime) -> datetime | None:
    """First window edge strictly after now, or None."""
    return earliest(*(m for m in moments if m is not None and m > now))


@dataclass(frozen=True)
class ValidityWindow:
    """Half-open window [start, end), validated on construction."""

    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.end <= self.start:
            raise InvalidInput("valid_until must be after valid_from")

    def contains(self, moment: datetime) -> bool:
        return window_contains(self.start, self.end, moment)

    def has_expired(self, moment: datetime) -> bool:
        return self.end is not None and moment >= self.end
