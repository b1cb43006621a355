# backend/tests/test_bucketing.py
"""
Tests for day and ISO-week bucketing.
"""

from datetime import date, datetime, timezone

import pytest

from magicsell.services.bucketing import bucket_orders, day_key, iso_week_key, parse_timestamp
from tests.factories import make_order


@pytest.mark.parametrize("day, expected", [
    (date(2024, 1, 1), "2024-W1"),
    (date(2024, 1, 7), "2024-W1"),
    (date(2024, 1, 8), "2024-W2"),
    (date(2021, 1, 1), "2020-W53"),
    (date(2024, 12, 30), "2025-W1"),
])
def test_iso_week_key(day, expected):
    assert iso_week_key(day) == expected


def test_iso_week_key_has_no_zero_padding():
    assert iso_week_key(datetime(2024, 3, 4, tzinfo=timezone.utc)) == "2024-W10"
    assert iso_week_key(date(2024, 2, 5)) == "2024-W6"


def test_parse_timestamp_normalises_to_utc():
    parsed = parse_timestamp("2024-01-02T23:30:00-02:00")
    assert parsed == datetime(2024, 1, 3, 1, 30, tzinfo=timezone.utc)
    assert day_key(parsed) == "2024-01-03"


def test_parse_timestamp_accepts_z_suffix_and_naive_values():
    assert parse_timestamp("2024-01-02T10:00:00.000Z") == datetime(2024, 1, 2, 10, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-02T10:00:00") == datetime(2024, 1, 2, 10, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", [None, "", "yesterday", "2024-13-45", "9999-12-31T23:00:00-05:00", "0001-01-01T01:00:00+05:00"])
def test_parse_timestamp_rejects_unreadable_values(value):
    assert parse_timestamp(value) is None


def test_bucket_orders_keeps_first_encounter_order():
    orders = [
        make_order(1, createdAt="2024-01-09T09:00:00Z"),
        make_order(2, createdAt="2024-01-02T09:00:00Z"),
        make_order(3, createdAt="2024-01-09T18:00:00Z"),
    ]

    buckets = bucket_orders(orders)

    assert list(buckets.days) == ["2024-01-09", "2024-01-02"]
    assert [o.id for o in buckets.days["2024-01-09"]] == [1, 3]
    assert list(buckets.weeks) == ["2024-W2", "2024-W1"]


def test_bucket_orders_skips_orders_without_timestamp():
    orders = [make_order(1), make_order(2, createdAt=None), make_order(3, createdAt="not a date")]

    buckets = bucket_orders(orders)

    assert buckets.skipped == [2, 3]
    assert sum(len(v) for v in buckets.days.values()) == 1
