"""시각 파싱 테스트"""
from datetime import datetime, timedelta, timezone

import pytest

from services.schedule_time import parse_timestamp, render_timestamp


@pytest.mark.parametrize("raw, expected", [
    ("2025-08-26T12:34:56Z", datetime(2025, 8, 26, 12, 34, 56)),
    ("2025-08-26T21:34:56+09:00", datetime(2025, 8, 26, 12, 34, 56)),
    ("2025-08-26T12:34:56", datetime(2025, 8, 26, 12, 34, 56)),
    ("2025-08-26 12:34:56.000", datetime(2025, 8, 26, 12, 34, 56)),
    ("2025-08-26", datetime(2025, 8, 26)),
])
def test_parse_timestamp_formats(raw, expected):
    assert parse_timestamp(raw) == expected


def test_parse_timestamp_empty_and_datetime():
    assert parse_timestamp(None) is None
    assert parse_timestamp("  ") is None
    kst = timezone(timedelta(hours=9))
    assert parse_timestamp(datetime(2025, 1, 1, 9, 0, tzinfo=kst)) == datetime(2025, 1, 1, 0, 0)


@pytest.mark.parametrize("raw", ["tomorrow", "2025-13-01", "26/08/2025 10:00"])
def test_parse_timestamp_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_timestamp(raw)


def test_render_timestamp():
    assert render_timestamp(None) == ""
    assert render_timestamp(datetime(2025, 8, 26, 9, 5)) == "2025-08-26 09:05:00"


def test_render_timestamp_drops_microseconds():
    assert render_timestamp(datetime(2026, 10, 16, 23, 39, 49, 728352)) == "2026-10-16 23:39:49"
