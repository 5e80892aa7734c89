"""Date-or-datetime helpers shared by the calculator and the ledger."""

import re
from dataclasses import dataclass
from datetime import date, datetime, time

from dateutil import parser as date_parser

_TIME_PATTERN = re.compile(r"\dT\d|\d:\d{2}")


@dataclass(frozen=True)
class Moment:
    """A parsed date value that remembers whether it carried a time of day."""

    value: datetime
    has_time: bool

    def render(self) -> str:
        """ISO-8601 text at the precision the value was read with."""
        if self.has_time:
            return self.value.isoformat()
        return self.value.date().isoformat()

    def with_value(self, value: datetime) -> "Moment":
        return Moment(value=value, has_time=self.has_time)


def has_time_component(text: str) -> bool:
    """True if a date string explicitly includes a time of day."""
    if _TIME_PATTERN.search(text):
        return True
    try:
        parsed = date_parser.parse(text)
    except (ValueError, OverflowError):
        return False
    return parsed.time() != time()


def parse_moment(value: str | date | datetime) -> Moment:
    """
    Parse a due date or timestamp.

    Accepts ISO-ish strings as well as the date/datetime objects that YAML
    frontmatter produces. Raises ValueError for anything unreadable.
    """
    if isinstance(value, datetime):
        return Moment(value=value, has_time=True)
    if isinstance(value, date):
        return Moment(value=datetime.combine(value, time()), has_time=False)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Not a date: {value!r}")

    text = value.strip()
    try:
        parsed = date_parser.parse(text)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Not a date: {value!r}") from e
    return Moment(value=parsed, has_time=has_time_component(text))


def align_now(now: datetime, reference: datetime) -> datetime:
    """Make `now` comparable with `reference` (naive vs aware)."""
    if reference.tzinfo is not None and now.tzinfo is None:
        return now.astimezone()
    if reference.tzinfo is None and now.tzinfo is not None:
        return now.astimezone().replace(tzinfo=None)
    return now


def is_before(moment: Moment, now: datetime) -> bool:
    """Strictly before `now`; date-only values compare by calendar day."""
    if not moment.has_time:
        return moment.value.date() < now.date()
    return moment.value < align_now(now, moment.value)


def is_after(moment: Moment, now: datetime) -> bool:
    """Strictly after `now`; date-only values compare by calendar day."""
    if not moment.has_time:
        return moment.value.date() > now.date()
    return moment.value > align_now(now, moment.value)
