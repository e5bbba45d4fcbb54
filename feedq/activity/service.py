"""Activity service - write, read and prune the activity stream.

The acting user always comes from the injected UserSession; nothing is
looked up from global request state.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from cachetools import Cache

from feedq.activity.filters import build_filter_query, validate_filter
from feedq.activity.interfaces import ActivityGrouper, SettingsProvider, UserSession
from feedq.activity.manager import ActivityManager
from feedq.activity.models import ActivityEvent
from feedq.activity.repository import ActivityRepository, MailQueueRepository
from feedq.activity.types import (
    METHOD_STREAM,
    Compare,
    Condition,
    FilterQuery,
    NotificationTypeInfo,
    StreamFilter,
    build_condition_query,
    conditions_from_mapping,
)
from feedq.config import EXPIRE_DAYS_DEFAULT, SECONDS_PER_DAY
from feedq.observability.logging import get_logger
from feedq.observability.telemetry import counter, time_block

logger = get_logger(__name__)


class ActivityService:
    """Service layer over the activity and mail-queue repositories.

    One instance owns its notification-type cache (keyed by language code).
    """

    def __init__(
        self,
        manager: ActivityManager,
        session: UserSession,
        repository: ActivityRepository | None = None,
        mail_queue: MailQueueRepository | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.manager = manager
        self.session = session
        self.repository = repository or ActivityRepository()
        self.mail_queue = mail_queue or MailQueueRepository()
        self.clock = clock
        # Unbounded: an entry lives as long as the service
        self._notification_types: Cache[str, dict[str, str | NotificationTypeInfo]] = Cache(
            maxsize=math.inf
        )

    def _now(self) -> int:
        return int(self.clock())

    def _current_user(self) -> str:
        return self.session.get_user() or ""

    def get_notification_types(self, language_code: str) -> dict[str, str | NotificationTypeInfo]:
        """
        Notification types declared by extensions, computed once per language.

        Returns:
            {type_id: description} where description is a string or a
            NotificationTypeInfo carrying the applicable methods
        """
        if language_code in self._notification_types:
            return self._notification_types[language_code]

        types = self.manager.get_notification_types(language_code)
        self._notification_types[language_code] = types
        return types

    def send(
        self,
        app: str,
        subject: str,
        subject_params: list[Any],
        message: str,
        message_params: list[Any],
        file: str,
        link: str,
        affected_user: str,
        type: str,
        priority: int,
        object_type: str = "",
        object_id: int = 0,
    ) -> bool:
        """
        Record an event in the activity stream.

        Args:
            affected_user: Recipient; empty means the acting user

        Returns:
            False (nothing written) when there is neither an acting user nor
            an explicit recipient; True once the row is inserted
        """
        timestamp = self._now()
        user = self._current_user()

        if affected_user == "" and user == "":
            counter("activity.skipped_anonymous")
            logger.debug("Skipping %s/%s event: no actor and no recipient", app, type)
            return False
        if affected_user == "":
            affected_user = user

        self.repository.insert(
            app=app,
            subject=subject,
            subject_params=subject_params,
            message=message,
            message_params=message_params,
            file=file,
            link=link,
            user=user,
            affected_user=affected_user,
            timestamp=timestamp,
            priority=priority,
            type=type,
            object_type=object_type,
            object_id=object_id,
        )
        counter("activity.sent")
        return True

    def send_event(self, event: ActivityEvent) -> bool:
        return self.send(
            event.app,
            event.subject,
            event.subject_params,
            event.message,
            event.message_params,
            event.file,
            event.link,
            event.affected_user,
            event.type,
            event.priority,
            event.object_type,
            event.object_id,
        )

    def store_mail(
        self,
        app: str,
        subject: str,
        subject_params: list[Any],
        affected_user: str,
        type: str,
        latest_send_time: int,
    ) -> bool:
        """
        Queue a digest item for affected_user.

        Args:
            latest_send_time: Event time plus the user's batch interval

        The recipient is not validated here, unlike send().
        """
        self.mail_queue.insert(
            app=app,
            subject=subject,
            subject_params=subject_params,
            affected_user=affected_user,
            timestamp=self._now(),
            type=type,
            latest_send=latest_send_time,
        )
        counter("mail_queue.stored")
        return True

    def validate_filter(self, filter_value: str | None) -> str:
        return validate_filter(filter_value, self.manager)

    def read(
        self,
        group_helper: ActivityGrouper,
        user_settings: SettingsProvider,
        start: int,
        count: int,
        filter: str = "all",
        user: str = "",
        object_type: str = "",
        object_id: int = 0,
    ) -> list[dict[str, Any]]:
        """
        Read one page of the stream for a user, grouped by group_helper.

        Args:
            start: Offset of the first row
            count: Page size
            filter: Filter token (callers should pass it through validate_filter)
            user: Viewer; empty means the session user

        Returns:
            group_helper's grouped activities; [] when there is no viewer or
            the viewer has no enabled types for this filter (no query issued)
        """
        if user == "":
            user = self._current_user()
            if user == "":
                return []

        group_helper.set_user(user)

        enabled = user_settings.get_notification_types(user, METHOD_STREAM)

        show_own_actions = True
        if filter in (StreamFilter.ALL, StreamFilter.FILTER):
            show_own_actions = bool(user_settings.get_user_setting(user, "setting", "self"))

        query = build_filter_query(
            user,
            filter,
            enabled,
            show_own_actions,
            self.manager,
            object_type=object_type,
            object_id=object_id,
        )
        if query is None:
            counter("activity.read_empty")
            return []

        return self.get_activities(count, start, query, group_helper)

    def get_activities(
        self, count: int, start: int, query: FilterQuery, group_helper: ActivityGrouper
    ) -> list[dict[str, Any]]:
        """Run the stream query and feed each row to the grouper."""
        with time_block("activity.read.latency"):
            for row in self.repository.iter_activities(query, limit=count, offset=start):
                group_helper.add_activity(row)
        counter("activity.read")
        return group_helper.get_activities()

    def expire(self, expire_days: int = EXPIRE_DAYS_DEFAULT) -> int:
        """
        Delete events older than expire_days (minimum 1 day).

        Returns:
            Number of rows deleted
        """
        ttl = SECONDS_PER_DAY * max(1, expire_days)
        time_limit = self._now() - ttl
        deleted = self.delete_activities([Compare("timestamp", "<", time_limit)])
        counter("activity.expired", deleted)
        logger.info("Expired %d activities older than %d days", deleted, max(1, expire_days))
        return deleted

    def delete_activities(self, conditions: Iterable[Condition] | Mapping[str, Any]) -> int:
        """
        Delete activities matching every condition.

        Args:
            conditions: Condition expressions, or the mapping form
                {column: value} / {column: (value, operator)}

        Returns:
            Number of rows deleted

        Raises:
            ValueError: Unknown column or operator (nothing is deleted)

        With no conditions every row is deleted.
        """
        if isinstance(conditions, Mapping):
            conditions = conditions_from_mapping(conditions)
        query = build_condition_query(conditions)
        if not query:
            logger.warning("delete_activities called without conditions: deleting all activities")
        return self.repository.delete_where(query)
