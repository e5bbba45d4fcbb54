"""
Per-user activity settings with in-memory overrides.

Categories:
    stream / email  -> key is a notification type, value is bool
    setting         -> self (bool), selfemail (bool), batchtime (seconds)

Unset values fall back to the defaults below, and to the manager's
default types for the stream/email categories.
"""

from __future__ import annotations

from threading import Lock
from typing import Any

from feedq.activity.manager import ActivityManager
from feedq.activity.types import METHOD_MAIL, METHOD_STREAM
from feedq.config import DEFAULT_BATCH_SECONDS, DEFAULT_LANGUAGE

CATEGORY_SETTING = "setting"

DEFAULT_SETTINGS: dict[str, Any] = {
    "self": True,
    "selfemail": False,
    "batchtime": DEFAULT_BATCH_SECONDS,
}


class UserSettings:
    def __init__(self, manager: ActivityManager, language_code: str = DEFAULT_LANGUAGE):
        self.manager = manager
        self.language_code = language_code
        self._preferences: dict[tuple[str, str, str], Any] = {}
        self._lock = Lock()

    def set_user_setting(self, user: str, category: str, key: str, value: Any) -> None:
        with self._lock:
            self._preferences[(user, category, key)] = value

    def get_default_setting(self, category: str, key: str) -> Any:
        if category == CATEGORY_SETTING:
            return DEFAULT_SETTINGS.get(key, False)
        if category in (METHOD_STREAM, METHOD_MAIL):
            return key in self.manager.get_default_types(category)
        return False

    def get_user_setting(self, user: str, category: str, key: str) -> Any:
        with self._lock:
            if (user, category, key) in self._preferences:
                return self._preferences[(user, category, key)]
        return self.get_default_setting(category, key)

    def get_notification_types(self, user: str, method: str) -> list[str]:
        """
        Types the user has enabled for a method.

        Types whose registration excludes the method are never returned.
        """
        enabled: list[str] = []
        for type_id, info in self.manager.get_notification_types(self.language_code).items():
            methods = getattr(info, "methods", None)
            if methods is not None and method not in methods:
                continue
            if self.get_user_setting(user, method, type_id):
                enabled.append(type_id)
        return enabled
