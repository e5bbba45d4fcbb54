"""Process-wide collaborators for the API, created on first use."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from feedq.activity import (
    ActivityManager,
    ActivityService,
    FilesExtension,
    StaticUserSession,
    UserSettings,
)
from feedq.api.middleware.user_auth import AuthenticatedUser, get_current_user


@lru_cache(maxsize=1)
def get_activity_manager() -> ActivityManager:
    manager = ActivityManager()
    manager.register_extension(FilesExtension())
    return manager


@lru_cache(maxsize=1)
def get_user_settings() -> UserSettings:
    return UserSettings(get_activity_manager())


@lru_cache(maxsize=1)
def get_catalog_service() -> ActivityService:
    """Long-lived service used for notification-type lookups (keeps the per-language cache warm)."""
    return ActivityService(get_activity_manager(), StaticUserSession())


def get_activity_service(
    user: AuthenticatedUser | None = Depends(get_current_user),
) -> ActivityService:
    """Request-scoped service acting as the header user."""
    return ActivityService(
        get_activity_manager(),
        StaticUserSession(user.id if user else None),
    )


def reset_dependencies() -> None:
    get_activity_manager.cache_clear()
    get_user_settings.cache_clear()
    get_catalog_service.cache_clear()
