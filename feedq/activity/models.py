"""
Activity stream models (Pydantic v2).

`ActivityEvent` is what callers hand to the writer; `ActivityRecord` and
`MailQueueEntry` mirror stored rows. Parameter lists are stored as JSON
text and decoded back to ordered lists on the way out.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def encode_params(params: list[Any] | tuple[Any, ...] | None) -> str:
    """Serialize an ordered parameter list for storage."""
    return json.dumps(list(params or []))


def decode_params(raw: str | None) -> list[Any]:
    """Inverse of encode_params. Empty or NULL columns decode to []."""
    if not raw:
        return []
    value = json.loads(raw)
    if not isinstance(value, list):
        return [value]
    return value


class ActivityEvent(BaseModel):
    """An event to record in the stream."""

    model_config = ConfigDict(frozen=True)

    app: str
    subject: str
    subject_params: list[Any] = Field(default_factory=list)
    message: str = ""
    message_params: list[Any] = Field(default_factory=list)
    file: str = ""
    link: str = ""
    affected_user: str = ""
    type: str
    priority: int = 0
    object_type: str = ""
    object_id: int = 0

    @field_validator("app", "type")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be blank")
        return value


class ActivityRecord(BaseModel):
    """A stored activity row with decoded parameters."""

    activity_id: int
    app: str
    subject: str
    subject_params: list[Any]
    message: str
    message_params: list[Any]
    file: str
    link: str
    user: str
    affected_user: str
    timestamp: int
    priority: int
    type: str
    object_type: str
    object_id: int

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> ActivityRecord:
        return cls(
            activity_id=row["activity_id"],
            app=row["app"],
            subject=row["subject"],
            subject_params=decode_params(row["subjectparams"]),
            message=row["message"] or "",
            message_params=decode_params(row["messageparams"]),
            file=row["file"] or "",
            link=row["link"] or "",
            user=row["user"] or "",
            affected_user=row["affecteduser"],
            timestamp=row["timestamp"],
            priority=row["priority"],
            type=row["type"],
            object_type=row["object_type"] or "",
            object_id=row["object_id"] or 0,
        )


class MailQueueEntry(BaseModel):
    """A pending digest item."""

    mail_id: int
    app: str
    subject: str
    subject_params: list[Any]
    affected_user: str
    timestamp: int
    type: str
    latest_send: int

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> MailQueueEntry:
        return cls(
            mail_id=row["mail_id"],
            app=row["amq_appid"],
            subject=row["amq_subject"],
            subject_params=decode_params(row["amq_subjectparams"]),
            affected_user=row["amq_affecteduser"],
            timestamp=row["amq_timestamp"],
            type=row["amq_type"],
            latest_send=row["amq_latest_send"],
        )
