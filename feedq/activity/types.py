"""
Module: types
Purpose: Shared value types for the activity stream.
Dependencies: feedq.infrastructure.database_schema (column whitelist only)

Leaf module: filter tokens, the predicate list used to build stream
queries, and the tagged condition expressions accepted by the pruner.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from feedq.infrastructure.database_schema import ACTIVITY_COLUMNS

# ---------------------------------------------------------------------------
# Filter tokens and delivery methods
# ---------------------------------------------------------------------------


class StreamFilter(str, Enum):
    """Built-in stream filter tokens.

    Extends str so tokens compare equal to the raw query-string values.
    """

    ALL = "all"
    SELF = "self"
    BY = "by"
    FILTER = "filter"


BUILTIN_FILTERS: frozenset[str] = frozenset(f.value for f in StreamFilter)

METHOD_STREAM = "stream"
METHOD_MAIL = "email"


@dataclass(frozen=True)
class NotificationTypeInfo:
    """Description of a notification type plus the methods it applies to."""

    desc: str
    methods: tuple[str, ...] = (METHOD_STREAM, METHOD_MAIL)


# ---------------------------------------------------------------------------
# Stream query predicates
# ---------------------------------------------------------------------------

_QUOTED_LITERAL = re.compile(r"'(?:[^']|'')*'")


def count_placeholders(fragment: str) -> int:
    """Count `?` placeholders, ignoring any inside single-quoted SQL literals."""
    return _QUOTED_LITERAL.sub("", fragment).count("?")


@dataclass(frozen=True)
class Predicate:
    """One SQL fragment with `?` placeholders and the values bound to them."""

    fragment: str
    params: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        placeholders = count_placeholders(self.fragment)
        if placeholders != len(self.params):
            raise ValueError(
                f"Predicate {self.fragment!r} has {placeholders} placeholders "
                f"but {len(self.params)} parameters"
            )


@dataclass
class FilterQuery:
    """Ordered list of predicates, AND-ed together.

    The WHERE clause and the parameter tuple are both derived from the same
    list, so placeholder order always matches parameter order.
    """

    predicates: list[Predicate] = field(default_factory=list)

    def add(self, fragment: str, *params: Any) -> FilterQuery:
        self.predicates.append(Predicate(fragment, tuple(params)))
        return self

    def add_in(self, column: str, values: Iterable[Any]) -> FilterQuery:
        values = tuple(values)
        if not values:
            raise ValueError(f"Refusing to build an empty IN () for {column}")
        placeholders = ", ".join("?" * len(values))
        return self.add(f"{column} IN ({placeholders})", *values)

    def where_clause(self) -> str:
        return " AND ".join(p.fragment for p in self.predicates)

    def parameters(self) -> tuple[Any, ...]:
        return tuple(value for p in self.predicates for value in p.params)

    def __bool__(self) -> bool:
        return bool(self.predicates)


# ---------------------------------------------------------------------------
# Delete conditions
# ---------------------------------------------------------------------------

COMPARISON_OPERATORS: frozenset[str] = frozenset({"=", "!=", "<>", "<", "<=", ">", ">="})


def _check_column(column: str) -> None:
    if column not in ACTIVITY_COLUMNS:
        raise ValueError(f"Unknown activity column: {column!r}")


@dataclass(frozen=True)
class Equals:
    column: str
    value: Any

    def __post_init__(self) -> None:
        _check_column(self.column)

    def to_predicate(self) -> Predicate:
        return Predicate(f"{self.column} = ?", (self.value,))


@dataclass(frozen=True)
class Compare:
    column: str
    operator: str
    value: Any

    def __post_init__(self) -> None:
        _check_column(self.column)
        if self.operator not in COMPARISON_OPERATORS:
            raise ValueError(f"Unsupported comparison operator: {self.operator!r}")

    def to_predicate(self) -> Predicate:
        return Predicate(f"{self.column} {self.operator} ?", (self.value,))


@dataclass(frozen=True)
class Between:
    """Inclusive range: low <= column <= high."""

    column: str
    low: Any
    high: Any

    def __post_init__(self) -> None:
        _check_column(self.column)

    def to_predicate(self) -> Predicate:
        return Predicate(f"{self.column} BETWEEN ? AND ?", (self.low, self.high))


Condition = Union[Equals, Compare, Between]


def conditions_from_mapping(conditions: Mapping[str, Any]) -> list[Condition]:
    """
    Convert the legacy `{column: value | (value, operator)}` form.

    A bare value means equality; a 2-tuple/list is `(value, operator)`;
    a 1-tuple/list is `(value,)` with equality.

    Raises:
        ValueError: On unknown columns or operators
    """
    converted: list[Condition] = []
    for column, comparison in conditions.items():
        if isinstance(comparison, (tuple, list)):
            if not comparison:
                raise ValueError(f"Empty comparison for column {column!r}")
            if len(comparison) >= 2 and comparison[1] is not None:
                converted.append(Compare(column, comparison[1], comparison[0]))
            else:
                converted.append(Equals(column, comparison[0]))
        else:
            converted.append(Equals(column, comparison))
    return converted


def build_condition_query(conditions: Iterable[Condition]) -> FilterQuery:
    query = FilterQuery()
    for condition in conditions:
        query.predicates.append(condition.to_predicate())
    return query
