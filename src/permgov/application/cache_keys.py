"""Cache key scheme and invalidation helpers."""

import logging
from collections.abc import Iterable

from permgov.application.ports import PermissionCache

logger = logging.getLogger(__name__)

EFFECTIVE_PREFIX = "permissions:user:"
USER_PERMISSIONS_LIST_PREFIX = "user-permissions:list:"
USER_ROLES_PREFIX = "user-roles:"


def effective_key(user_id: str) -> str:
    return f"{EFFECTIVE_PREFIX}{user_id}"


def user_permissions_list_prefix(user_id: str) -> str:
    return f"{USER_PERMISSIONS_LIST_PREFIX}{user_id}:"


def user_permissions_list_key(user_id: str, fragment: str) -> str:
    return f"{user_permissions_list_prefix(user_id)}{fragment}"


def user_roles_key(user_id: str) -> str:
    return f"{USER_ROLES_PREFIX}{user_id}"


async def invalidate_user(cache: PermissionCache, user_id: str) -> None:
    """Drop every cached value derived from a user's grants and roles."""
    await cache.invalidate(effective_key(user_id))
    await cache.invalidate(user_roles_key(user_id))
    await cache.invalidate_prefix(user_permissions_list_prefix(user_id))
    logger.debug("Invalidated permission cache for user %s", user_id)


async def invalidate_users(cache: PermissionCache, user_ids: Iterable[str]) -> None:
    for user_id in dict.fromkeys(user_ids):
        await invalidate_user(cache, user_id)
