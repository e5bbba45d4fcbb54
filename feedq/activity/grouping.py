"""Default grouping of stream rows into display entries."""

from __future__ import annotations

from typing import Any

from feedq.activity.models import decode_params

_GROUP_KEY_FIELDS = ("app", "type", "subject", "user", "object_type")


class GroupHelper:
    """
    Accumulates rows (newest first) into display-ready activities.

    Consecutive rows with the same app, type, subject, actor and object type
    collapse into one entry when grouping is enabled. The first row of a run
    is the representative; every member's subject parameters are kept in
    `subjectparams_array`.
    """

    def __init__(self, allow_grouping: bool = True):
        self.allow_grouping = allow_grouping
        self.user: str | None = None
        self._activities: list[dict[str, Any]] = []
        self._open_key: tuple[Any, ...] | None = None

    def set_user(self, user: str) -> None:
        self.user = user

    def add_activity(self, row: dict[str, Any]) -> None:
        activity = dict(row)
        activity["subjectparams"] = decode_params(activity.get("subjectparams"))
        activity["messageparams"] = decode_params(activity.get("messageparams"))

        key = tuple(activity.get(f) for f in _GROUP_KEY_FIELDS)
        if self.allow_grouping and self._activities and key == self._open_key:
            current = self._activities[-1]
            current["subjectparams_array"].append(activity["subjectparams"])
            current["activity_ids"].append(activity.get("activity_id"))
            current["count"] += 1
            return

        activity["subjectparams_array"] = [activity["subjectparams"]]
        activity["activity_ids"] = [activity.get("activity_id")]
        activity["count"] = 1
        self._activities.append(activity)
        self._open_key = key

    def get_activities(self) -> list[dict[str, Any]]:
        return list(self._activities)
