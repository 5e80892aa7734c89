"""Tests for recurrence parsing and due-date arithmetic."""

from datetime import date, datetime, timezone

import pytest

from recurring.core import recurrence
from recurring.core.dates import has_time_component, parse_moment
from recurring.core.recurrence import (
    Mode,
    RecurrenceRule,
    Unit,
    missed_occurrences,
    next_due_date,
    parse_recurrence,
)


def rule(text: str) -> RecurrenceRule:
    parsed = parse_recurrence(text)
    assert parsed is not None
    return parsed


class TestParseRecurrence:
    @pytest.mark.parametrize(
        "text,amount,unit,mode",
        [
            ("1w", 1, Unit.WEEK, Mode.FROM_DUE),
            ("3d", 3, Unit.DAY, Mode.FROM_DUE),
            ("2mc", 2, Unit.MONTH, Mode.FROM_COMPLETION),
            ("1yc", 1, Unit.YEAR, Mode.FROM_COMPLETION),
            ("12m", 12, Unit.MONTH, Mode.FROM_DUE),
            ("10 d", 10, Unit.DAY, Mode.FROM_DUE),
        ],
    )
    def test_shorthand(self, text, amount, unit, mode):
        assert parse_recurrence(text) == RecurrenceRule(amount=amount, unit=unit, mode=mode)

    @pytest.mark.parametrize(
        "longform,shorthand",
        [
            ("1 week", "1w"),
            ("3 days", "3d"),
            ("1 weeks", "1w"),
            ("2 months after completion", "2mc"),
            ("1 year after completion", "1yc"),
            ("6 month", "6m"),
        ],
    )
    def test_longform_matches_shorthand(self, longform, shorthand):
        assert parse_recurrence(longform) == parse_recurrence(shorthand)

    def test_is_case_insensitive_and_trimmed(self):
        assert parse_recurrence("  2W ") == rule("2w")
        assert parse_recurrence("1 Week After Completion") == rule("1wc")

    @pytest.mark.parametrize(
        "text",
        ["", "   ", "w", "1x", "0d", "0 days", "-1d", "1.5w", "every week", "1 fortnight", "1wc extra", "c1w"],
    )
    def test_malformed_returns_none(self, text):
        assert parse_recurrence(text) is None

    @pytest.mark.parametrize("value", [None, 7, ["1w"], True])
    def test_non_string_returns_none(self, value):
        assert parse_recurrence(value) is None

    def test_describe(self):
        assert rule("1w").describe() == "every week"
        assert rule("2mc").describe() == "every 2 months after completion"


class TestNextDueDate:
    def test_from_due_catches_up_past_now(self):
        result = next_due_date("2023-01-01", "2023-03-01", rule("1w"), now=datetime(2023, 3, 1))
        assert result == "2023-03-05"

    def test_from_due_single_step_when_on_time(self):
        result = next_due_date("2023-10-15", "2023-10-16", rule("1w"), now=datetime(2023, 10, 16))
        assert result == "2023-10-22"

    def test_from_due_result_is_strictly_after_now(self):
        # 2023-10-22 is "now", so it does not count as the next occurrence
        result = next_due_date("2023-10-15", "2023-10-22", rule("1w"), now=datetime(2023, 10, 22, 8, 0))
        assert result == "2023-10-29"

    def test_from_completion_uses_completion_date_even_in_past(self):
        result = next_due_date("2023-01-01", "2023-06-15", rule("2dc"), now=datetime(2023, 6, 20))
        assert result == "2023-06-17"

    def test_month_end_clamps(self):
        result = next_due_date("2023-01-31", "2023-02-01", rule("1m"), now=datetime(2023, 2, 1))
        assert result == "2023-02-28"

    def test_month_catch_up_does_not_drift(self):
        result = next_due_date("2023-01-31", "2023-03-01", rule("1m"), now=datetime(2023, 3, 1))
        assert result == "2023-03-31"

    def test_leap_day_yearly(self):
        result = next_due_date("2020-02-29", "2020-03-01", rule("1y"), now=datetime(2020, 3, 1))
        assert result == "2021-02-28"

    def test_keeps_time_of_day(self):
        result = next_due_date(
            "2023-10-15T09:00:00", "2023-10-15T10:00:00", rule("1d"), now=datetime(2023, 10, 15, 10, 0)
        )
        assert result == "2023-10-16T09:00:00"

    def test_from_completion_keeps_due_time_of_day(self):
        result = next_due_date(
            "2023-10-15T09:00:00",
            datetime(2023, 10, 20, 18, 30),
            rule("1wc"),
            now=datetime(2023, 10, 20, 18, 30),
        )
        assert result == "2023-10-27T09:00:00"

    def test_accepts_date_objects(self):
        result = next_due_date(date(2023, 10, 15), datetime(2023, 10, 16), rule("1w"), now=datetime(2023, 10, 16))
        assert result == "2023-10-22"

    def test_datetime_object_due_stays_timestamp(self):
        result = next_due_date(
            datetime(2023, 10, 15, 7, 30), datetime(2023, 10, 15, 8), rule("1d"), now=datetime(2023, 10, 15, 8)
        )
        assert result == "2023-10-16T07:30:00"

    def test_timezone_aware_due(self):
        result = next_due_date(
            "2023-10-15T09:00:00+02:00",
            "2023-10-15T10:00:00+02:00",
            rule("1d"),
            now=datetime(2023, 10, 15, 12, 0, tzinfo=timezone.utc),
        )
        assert result == "2023-10-16T09:00:00+02:00"

    def test_unreadable_due_raises(self):
        with pytest.raises(ValueError):
            next_due_date("someday", "2023-10-16", rule("1w"), now=datetime(2023, 10, 16))


class TestMissedOccurrences:
    def test_lists_every_missed_date(self):
        result = missed_occurrences("2023-01-01", rule("1w"), now=datetime(2023, 1, 22))
        assert result == ["2023-01-01", "2023-01-08", "2023-01-15"]

    def test_empty_for_from_completion(self):
        assert missed_occurrences("2023-01-01", rule("1wc"), now=datetime(2023, 6, 1)) == []

    def test_empty_when_due_in_future(self):
        assert missed_occurrences("2023-11-01", rule("1w"), now=datetime(2023, 10, 16)) == []

    def test_due_today_is_not_missed(self):
        assert missed_occurrences("2023-10-16", rule("1w"), now=datetime(2023, 10, 16, 15, 0)) == []

    def test_single_late_occurrence(self):
        assert missed_occurrences("2023-10-15", rule("1w"), now=datetime(2023, 10, 16)) == ["2023-10-15"]

    def test_several_weeks_late(self):
        result = missed_occurrences("2023-09-01", rule("1w"), now=datetime(2023, 10, 16))
        assert result == [
            "2023-09-01",
            "2023-09-08",
            "2023-09-15",
            "2023-09-22",
            "2023-09-29",
            "2023-10-06",
            "2023-10-13",
        ]

    def test_timed_due_compares_full_timestamp(self):
        result = missed_occurrences("2023-10-15T09:00:00", rule("1d"), now=datetime(2023, 10, 17, 10, 0))
        assert result == ["2023-10-15T09:00:00", "2023-10-16T09:00:00", "2023-10-17T09:00:00"]

    def test_stops_at_cap(self, monkeypatch):
        monkeypatch.setattr(recurrence, "MAX_MISSED_OCCURRENCES", 5)
        result = missed_occurrences("2023-01-01", rule("1d"), now=datetime(2023, 2, 1))
        assert len(result) == 5
        assert result[-1] == "2023-01-05"


class TestDates:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2023-10-15", False),
            ("2023-10-15T09:00", True),
            ("2023-10-15 09:00", True),
            ("2023-10-15T00:00:00+02:00", True),
        ],
    )
    def test_has_time_component(self, text, expected):
        assert has_time_component(text) is expected

    def test_date_object_is_date_only(self):
        moment = parse_moment(date(2023, 10, 15))
        assert moment.has_time is False
        assert moment.render() == "2023-10-15"

    @pytest.mark.parametrize("value", ["", "   ", None, 42])
    def test_rejects_non_dates(self, value):
        with pytest.raises(ValueError):
            parse_moment(value)
