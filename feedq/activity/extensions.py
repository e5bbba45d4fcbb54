"""
Built-in activity extension for file and share events.

Registers the file notification types and two named stream filters:
`files` (everything the files app wrote) and `shares` (sharing events).
"""

from __future__ import annotations

from typing import Any

from feedq.activity.manager import BaseExtension
from feedq.activity.types import METHOD_MAIL, METHOD_STREAM, NotificationTypeInfo

APP_FILES = "files"
APP_FILES_SHARING = "files_sharing"

TYPE_FILE_CREATED = "file_created"
TYPE_FILE_CHANGED = "file_changed"
TYPE_FILE_DELETED = "file_deleted"
TYPE_FILE_RESTORED = "file_restored"
TYPE_SHARED = "shared"

FILTER_FILES = "files"
FILTER_SHARES = "shares"

FILE_TYPES: tuple[str, ...] = (
    TYPE_FILE_CREATED,
    TYPE_FILE_CHANGED,
    TYPE_FILE_DELETED,
    TYPE_FILE_RESTORED,
)


class FilesExtension(BaseExtension):
    """File lifecycle and sharing events."""

    def get_notification_types(
        self, language_code: str
    ) -> dict[str, str | NotificationTypeInfo] | None:
        return {
            TYPE_SHARED: "A file or folder has been shared",
            TYPE_FILE_CREATED: "A new file or folder has been created",
            TYPE_FILE_CHANGED: "A file or folder has been changed",
            TYPE_FILE_DELETED: "A file or folder has been deleted",
            # Restores only show up in the stream, never in digests
            TYPE_FILE_RESTORED: NotificationTypeInfo(
                desc="A file or folder has been restored",
                methods=(METHOD_STREAM,),
            ),
        }

    def get_default_types(self, method: str) -> list[str] | None:
        if method == METHOD_STREAM:
            return [TYPE_SHARED, *FILE_TYPES]
        if method == METHOD_MAIL:
            return [TYPE_SHARED]
        return None

    def filter_notification_types(self, types: list[str], filter_value: str) -> list[str] | None:
        if filter_value == FILTER_FILES:
            return [t for t in types if t in FILE_TYPES]
        if filter_value == FILTER_SHARES:
            return [t for t in types if t == TYPE_SHARED]
        return None

    def is_filter_valid(self, filter_value: str) -> bool:
        return filter_value in (FILTER_FILES, FILTER_SHARES)

    def get_query_for_filter(self, filter_value: str) -> tuple[str, list[Any]] | None:
        if filter_value == FILTER_FILES:
            return "app = ?", [APP_FILES]
        if filter_value == FILTER_SHARES:
            return "app IN (?, ?)", [APP_FILES, APP_FILES_SHARING]
        return None
