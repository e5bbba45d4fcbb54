"""
Stream filter resolution.

Turns a requested filter token plus the viewer's enabled notification
types into the ordered predicate list for the stream query:

    affecteduser = ?                      [user]
    type IN (?, ...)                      [enabled types...]
    <token-specific predicates>           [user | object_type, object_id]
    <extension condition>                 [extension params...]

Pure logic; no database access.
"""

from __future__ import annotations

from feedq.activity.manager import ActivityManager
from feedq.activity.types import BUILTIN_FILTERS, FilterQuery, StreamFilter


def validate_filter(filter_value: str | None, manager: ActivityManager) -> str:
    """
    Canonicalize a requested filter token.

    Built-in tokens and tokens an extension recognizes pass through;
    anything else (including None) becomes "all".
    """
    if filter_value is None:
        return StreamFilter.ALL.value

    if filter_value in BUILTIN_FILTERS:
        # StreamFilter members format as "StreamFilter.SELF"; return the raw token
        return StreamFilter(filter_value).value

    if manager.is_filter_valid(filter_value):
        return filter_value

    return StreamFilter.ALL.value


def unique_types(types: list[str]) -> list[str]:
    """Drop duplicates, keeping first-seen order."""
    return list(dict.fromkeys(types))


def build_filter_query(
    user: str,
    filter_value: str,
    enabled_types: list[str],
    show_own_actions: bool,
    manager: ActivityManager,
    object_type: str = "",
    object_id: int = 0,
) -> FilterQuery | None:
    """
    Build the predicates for one stream read.

    Args:
        user: Viewer (the affected user)
        filter_value: Canonical filter token (see validate_filter)
        enabled_types: Types the viewer enabled for the stream
        show_own_actions: Viewer's "self" setting
        manager: Extension registry (type narrowing + extra conditions)
        object_type / object_id: Scope for the "filter" token

    Returns:
        FilterQuery, or None when no notification type survives filtering.
        Callers must not query in that case.
    """
    types = unique_types(manager.filter_notification_types(list(enabled_types), filter_value))
    if not types:
        return None

    query = FilterQuery()
    query.add("affecteduser = ?", user)
    query.add_in("type", types)

    if filter_value == StreamFilter.SELF:
        query.add("user = ?", user)
    elif filter_value == StreamFilter.BY or (
        filter_value == StreamFilter.ALL and not show_own_actions
    ):
        query.add("user <> ?", user)
    elif filter_value == StreamFilter.FILTER:
        if not show_own_actions:
            query.add("user <> ?", user)
        query.add("object_type = ?", object_type)
        query.add("object_id = ?", object_id)

    condition, params = manager.get_query_for_filter(filter_value)
    if condition is not None:
        query.add(condition, *(params or []))

    return query
