"""
FeedQ activity module - event stream, filters, digest queue.
"""

from feedq.activity.consumer import ActivityConsumer, ConsumerResult
from feedq.activity.extensions import FilesExtension
from feedq.activity.filters import build_filter_query, validate_filter
from feedq.activity.grouping import GroupHelper
from feedq.activity.interfaces import StaticUserSession, UserSession
from feedq.activity.manager import ActivityManager, BaseExtension
from feedq.activity.models import ActivityEvent, ActivityRecord, MailQueueEntry
from feedq.activity.repository import ActivityRepository, MailQueueRepository
from feedq.activity.service import ActivityService
from feedq.activity.settings import UserSettings
from feedq.activity.types import (
    Between,
    Compare,
    Equals,
    FilterQuery,
    NotificationTypeInfo,
    Predicate,
    StreamFilter,
)

__all__ = [
    # Models
    "ActivityEvent",
    "ActivityRecord",
    "MailQueueEntry",
    # Types
    "Between",
    "Compare",
    "Equals",
    "FilterQuery",
    "NotificationTypeInfo",
    "Predicate",
    "StreamFilter",
    # Repositories
    "ActivityRepository",
    "MailQueueRepository",
    # Registry
    "ActivityManager",
    "BaseExtension",
    "FilesExtension",
    # Collaborators
    "GroupHelper",
    "StaticUserSession",
    "UserSession",
    "UserSettings",
    # Service
    "ActivityConsumer",
    "ActivityService",
    "ConsumerResult",
    "build_filter_query",
    "validate_filter",
]
