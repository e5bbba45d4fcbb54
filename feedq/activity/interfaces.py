"""Collaborator protocols used by the activity service.

Concrete defaults live next to them (StaticUserSession here, UserSettings
in settings.py, GroupHelper in grouping.py); callers may inject their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


class UserSession(Protocol):
    """Resolves the acting user for the current request."""

    def get_user(self) -> str | None:
        """User id of the logged-in actor, or None for anonymous access."""
        ...


@dataclass(frozen=True)
class StaticUserSession:
    """Session with a fixed user (None means anonymous)."""

    user_id: str | None = None

    def get_user(self) -> str | None:
        return self.user_id or None


class SettingsProvider(Protocol):
    def get_notification_types(self, user: str, method: str) -> list[str]:
        """Notification types the user enabled for a method ("stream" or "email")."""
        ...

    def get_user_setting(self, user: str, category: str, key: str) -> Any:
        ...


class ActivityGrouper(Protocol):
    """Stateful accumulator over the stream's row cursor."""

    def set_user(self, user: str) -> None: ...

    def add_activity(self, row: dict[str, Any]) -> None: ...

    def get_activities(self) -> list[dict[str, Any]]: ...
