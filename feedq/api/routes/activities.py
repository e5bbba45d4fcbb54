"""
Activity stream API endpoints.

Read a user's stream page, publish events, and inspect the registered
notification types and filter tokens.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from feedq.activity import (
    ActivityEvent,
    ActivityService,
    GroupHelper,
    NotificationTypeInfo,
    UserSettings,
)
from feedq.api.dependencies import (
    get_activity_service,
    get_catalog_service,
    get_user_settings,
)
from feedq.config import API_PAGE_SIZE_DEFAULT, API_PAGE_SIZE_MAX, DEFAULT_LANGUAGE
from feedq.observability.logging import get_logger
from feedq.observability.telemetry import log_event
from feedq.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api/activities", tags=["activities"])
logger = get_logger(__name__)


# ============================================================================
# Request/Response Models
# ============================================================================


class ActivityListResponse(BaseModel):
    """One page of a user's stream."""

    filter: str
    start: int
    count: int
    activities: list[dict[str, Any]]


class SendActivityRequest(BaseModel):
    """Event payload; the actor is the X-User-Id caller."""

    app: str = Field(..., min_length=1, max_length=64)
    subject: str = Field(..., min_length=1, max_length=255)
    subject_params: list[Any] = Field(default_factory=list)
    message: str = Field("", max_length=255)
    message_params: list[Any] = Field(default_factory=list)
    file: str = Field("", max_length=4000)
    link: str = Field("", max_length=4000)
    affected_user: str = Field("", max_length=64)
    type: str = Field(..., min_length=1, max_length=255)
    priority: int = 0
    object_type: str = Field("", max_length=255)
    object_id: int = Field(0, ge=0)


class SendActivityResponse(BaseModel):
    stored: bool


class NotificationTypeResponse(BaseModel):
    desc: str
    methods: list[str]


class FilterResolutionResponse(BaseModel):
    requested: str
    filter: str


# ============================================================================
# Endpoints
# ============================================================================


@router.get("", response_model=ActivityListResponse)
def list_activities(
    filter: str | None = Query(None, max_length=64),
    start: int = Query(0, ge=0),
    count: int = Query(API_PAGE_SIZE_DEFAULT, ge=1, le=API_PAGE_SIZE_MAX),
    object_type: str = Query("", max_length=255),
    object_id: int = Query(0, ge=0),
    grouping: bool = Query(True),
    service: ActivityService = Depends(get_activity_service),
    user_settings: UserSettings = Depends(get_user_settings),
) -> ActivityListResponse:
    """
    Read one page of the caller's stream.

    Unknown filter tokens fall back to "all". Anonymous callers get an
    empty page.
    """
    canonical = service.validate_filter(filter)
    try:
        activities = service.read(
            GroupHelper(allow_grouping=grouping),
            user_settings,
            start,
            count,
            canonical,
            object_type=object_type,
            object_id=object_id,
        )
    except sqlite3.Error as e:
        logger.error("Failed to read activities: %s", e)
        raise HTTPException(
            status_code=500, detail=sanitize_error_message(str(e), 500)
        ) from e

    return ActivityListResponse(
        filter=canonical,
        start=start,
        count=count,
        activities=activities,
    )


@router.post("", response_model=SendActivityResponse)
def send_activity(
    request: SendActivityRequest,
    service: ActivityService = Depends(get_activity_service),
) -> SendActivityResponse:
    """
    Record an event in the stream.

    `stored` is false when neither the caller nor `affected_user`
    identifies a recipient.
    """
    try:
        event = ActivityEvent(**request.model_dump())
        stored = service.send_event(event)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from e
    except sqlite3.Error as e:
        logger.error("Failed to store activity %s/%s: %s", request.app, request.type, e)
        raise HTTPException(
            status_code=500, detail=sanitize_error_message(str(e), 500)
        ) from e

    if stored:
        log_event("api.activity.sent", app=request.app, type=request.type)
    return SendActivityResponse(stored=stored)


@router.get("/types", response_model=dict[str, NotificationTypeResponse])
def list_notification_types(
    lang: str = Query(DEFAULT_LANGUAGE, min_length=2, max_length=10),
) -> dict[str, NotificationTypeResponse]:
    """Registered notification types with the delivery methods they support."""
    types = get_catalog_service().get_notification_types(lang)

    response: dict[str, NotificationTypeResponse] = {}
    for type_id, info in types.items():
        if isinstance(info, NotificationTypeInfo):
            response[type_id] = NotificationTypeResponse(desc=info.desc, methods=list(info.methods))
        else:
            response[type_id] = NotificationTypeResponse(
                desc=info, methods=list(NotificationTypeInfo(desc=info).methods)
            )
    return response


@router.get("/filters/{token}", response_model=FilterResolutionResponse)
def resolve_filter(token: str) -> FilterResolutionResponse:
    """Show which filter a token resolves to."""
    canonical = get_catalog_service().validate_filter(token)
    return FilterResolutionResponse(requested=token, filter=canonical)
