"""Route incoming events to the stream and/or the digest queue per user settings."""

from __future__ import annotations

from dataclasses import dataclass

from feedq.activity.interfaces import SettingsProvider
from feedq.activity.models import ActivityEvent
from feedq.activity.service import ActivityService
from feedq.activity.settings import CATEGORY_SETTING
from feedq.activity.types import METHOD_MAIL, METHOD_STREAM
from feedq.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ConsumerResult:
    """What receive() did with one event."""

    streamed: bool = False
    queued: bool = False


class ActivityConsumer:
    def __init__(self, service: ActivityService, user_settings: SettingsProvider):
        self.service = service
        self.user_settings = user_settings

    def receive(self, event: ActivityEvent) -> ConsumerResult:
        """
        Dispatch one event for its affected user.

        - stream setting on for the type -> ActivityService.send
        - email setting on for the type -> ActivityService.store_mail with
          latest_send = now + the user's batch interval; self-caused events
          are only mailed when the user enabled "selfemail"
        """
        actor = self.service.session.get_user() or ""
        affected_user = event.affected_user or actor
        if not affected_user:
            return ConsumerResult()

        is_self_action = affected_user == actor
        stream_enabled = event.type in self.user_settings.get_notification_types(
            affected_user, METHOD_STREAM
        )
        email_enabled = event.type in self.user_settings.get_notification_types(
            affected_user, METHOD_MAIL
        )
        if email_enabled and is_self_action:
            email_enabled = bool(
                self.user_settings.get_user_setting(affected_user, CATEGORY_SETTING, "selfemail")
            )

        result = ConsumerResult()
        if stream_enabled:
            result.streamed = self.service.send_event(event)

        if email_enabled:
            batch_seconds = int(
                self.user_settings.get_user_setting(affected_user, CATEGORY_SETTING, "batchtime") or 0
            )
            latest_send = int(self.service.clock()) + batch_seconds
            result.queued = self.service.store_mail(
                event.app,
                event.subject,
                event.subject_params,
                affected_user,
                event.type,
                latest_send,
            )

        logger.debug(
            "Received %s/%s for %s: streamed=%s queued=%s",
            event.app,
            event.type,
            affected_user,
            result.streamed,
            result.queued,
        )
        return result
