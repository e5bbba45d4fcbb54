"""Tests for predicate building and delete conditions"""

from __future__ import annotations

import pytest

from feedq.activity.types import (
    Between,
    Compare,
    Equals,
    FilterQuery,
    Predicate,
    StreamFilter,
    build_condition_query,
    count_placeholders,
    conditions_from_mapping,
)


def test_stream_filter_compares_equal_to_raw_tokens():
    assert StreamFilter.BY == "by"
    assert "filter" == StreamFilter.FILTER


def test_predicate_rejects_placeholder_mismatch():
    with pytest.raises(ValueError, match="placeholders"):
        Predicate("user = ? AND type = ?", ("alice",))


@pytest.mark.parametrize(
    ("fragment", "expected"),
    [
        ("user = ?", 1),
        ("link NOT LIKE '%?%'", 0),
        ("subject = 'it''s ?' AND user = ?", 1),
        ("a = '?' OR b = ? OR c = '?'", 1),
    ],
)
def test_count_placeholders_skips_quoted_literals(fragment, expected):
    assert count_placeholders(fragment) == expected


def test_predicate_accepts_literal_question_mark():
    assert Predicate("link NOT LIKE '%?%'").params == ()


def test_filter_query_flattens_in_append_order():
    query = FilterQuery().add("a = ?", 1).add_in("b", [2, 3]).add("c BETWEEN ? AND ?", 4, 5)

    assert query.where_clause() == "a = ? AND b IN (?, ?) AND c BETWEEN ? AND ?"
    assert query.parameters() == (1, 2, 3, 4, 5)


def test_filter_query_refuses_empty_in():
    with pytest.raises(ValueError, match="empty IN"):
        FilterQuery().add_in("type", [])


def test_empty_filter_query_is_falsy():
    assert not FilterQuery()
    assert FilterQuery().add("1 = 1")


def test_condition_predicates():
    assert Equals("app", "files").to_predicate() == Predicate("app = ?", ("files",))
    assert Compare("timestamp", "<", 10).to_predicate() == Predicate("timestamp < ?", (10,))
    assert Between("priority", 1, 3).to_predicate() == Predicate(
        "priority BETWEEN ? AND ?", (1, 3)
    )


@pytest.mark.parametrize("operator", ["<; DROP TABLE activity", "LIKE", "", "=="])
def test_compare_rejects_unknown_operator(operator):
    with pytest.raises(ValueError, match="operator"):
        Compare("timestamp", operator, 1)


@pytest.mark.parametrize("column", ["nope", "timestamp; --", "amq_type"])
def test_conditions_reject_unknown_column(column):
    with pytest.raises(ValueError, match="column"):
        Equals(column, 1)


def test_conditions_from_mapping():
    conditions = conditions_from_mapping(
        {"timestamp": (100, "<"), "app": "files", "type": ("shared",), "user": ["bob", None]}
    )

    assert conditions == [
        Compare("timestamp", "<", 100),
        Equals("app", "files"),
        Equals("type", "shared"),
        Equals("user", "bob"),
    ]


def test_conditions_from_mapping_rejects_empty_comparison():
    with pytest.raises(ValueError):
        conditions_from_mapping({"timestamp": ()})


def test_build_condition_query_ands_conditions():
    query = build_condition_query([Equals("affecteduser", "bob"), Compare("timestamp", ">=", 5)])

    assert query.where_clause() == "affecteduser = ? AND timestamp >= ?"
    assert query.parameters() == ("bob", 5)
