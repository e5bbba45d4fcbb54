"""
Activity extension registry.

Apps plug notification types, named stream filters and per-filter SQL
conditions into the stream by registering an extension. The manager
asks every extension in registration order and merges the answers.

Usage:
    manager = ActivityManager()
    manager.register_extension(FilesExtension())

    manager.is_filter_valid("files")           # True
    manager.get_query_for_filter("files")      # ("((app = ?))", ["files"])
"""

from __future__ import annotations

from typing import Any, Protocol

from feedq.activity.types import NotificationTypeInfo
from feedq.observability.logging import get_logger

logger = get_logger(__name__)


class ActivityExtension(Protocol):
    """What an app contributes to the activity stream.

    Every hook may return None to mean "not mine".
    """

    def get_notification_types(
        self, language_code: str
    ) -> dict[str, str | NotificationTypeInfo] | None: ...

    def get_default_types(self, method: str) -> list[str] | None: ...

    def filter_notification_types(self, types: list[str], filter_value: str) -> list[str] | None: ...

    def is_filter_valid(self, filter_value: str) -> bool: ...

    def get_query_for_filter(self, filter_value: str) -> tuple[str, list[Any]] | None: ...


class BaseExtension:
    """No-op implementation of every hook; subclasses override what they need."""

    def get_notification_types(
        self, language_code: str
    ) -> dict[str, str | NotificationTypeInfo] | None:
        return None

    def get_default_types(self, method: str) -> list[str] | None:
        return None

    def filter_notification_types(self, types: list[str], filter_value: str) -> list[str] | None:
        return None

    def is_filter_valid(self, filter_value: str) -> bool:
        return False

    def get_query_for_filter(self, filter_value: str) -> tuple[str, list[Any]] | None:
        return None


class ActivityManager:
    """Aggregates registered extensions."""

    def __init__(self, extensions: list[ActivityExtension] | None = None):
        self._extensions: list[ActivityExtension] = list(extensions or [])

    def register_extension(self, extension: ActivityExtension) -> None:
        self._extensions.append(extension)
        logger.info("Registered activity extension: %s", type(extension).__name__)

    @property
    def extensions(self) -> list[ActivityExtension]:
        return list(self._extensions)

    def get_notification_types(self, language_code: str) -> dict[str, str | NotificationTypeInfo]:
        """
        Merge notification types from every extension.

        Later extensions do not override types an earlier one already declared.
        """
        types: dict[str, str | NotificationTypeInfo] = {}
        for extension in self._extensions:
            contributed = extension.get_notification_types(language_code)
            if not contributed:
                continue
            for type_id, description in contributed.items():
                types.setdefault(type_id, description)
        return types

    def get_default_types(self, method: str) -> list[str]:
        defaults: list[str] = []
        for extension in self._extensions:
            contributed = extension.get_default_types(method)
            if contributed:
                defaults.extend(t for t in contributed if t not in defaults)
        return defaults

    def filter_notification_types(self, types: list[str], filter_value: str) -> list[str]:
        """Let each extension narrow the type list for a filter, in order."""
        for extension in self._extensions:
            narrowed = extension.filter_notification_types(types, filter_value)
            if narrowed is not None:
                types = list(narrowed)
        return types

    def is_filter_valid(self, filter_value: str) -> bool:
        return any(extension.is_filter_valid(filter_value) for extension in self._extensions)

    def get_query_for_filter(self, filter_value: str) -> tuple[str | None, list[Any] | None]:
        """
        Combine extension conditions for a filter.

        Returns:
            (fragment, params) where the fragment OR-combines every
            extension's condition, or (None, None) when no extension
            contributes one. Parameters follow registration order.
        """
        conditions: list[str] = []
        parameters: list[Any] = []
        for extension in self._extensions:
            contributed = extension.get_query_for_filter(filter_value)
            if not contributed:
                continue
            condition, params = contributed
            conditions.append(condition)
            parameters.extend(params or [])

        if not conditions:
            return None, None

        return "((" + ") OR (".join(conditions) + "))", parameters
