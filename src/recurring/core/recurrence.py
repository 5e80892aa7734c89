"""Recurrence rules and due-date arithmetic - no I/O dependencies."""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum

from dateutil.relativedelta import relativedelta

from .dates import Moment, is_after, is_before, parse_moment

logger = logging.getLogger(__name__)

# Upper bound on missed occurrences enumerated for one due date
MAX_MISSED_OCCURRENCES = 10_000

_SHORTHAND = re.compile(r"^(\d+)\s*([dwmy])(c)?$")
_LONGFORM = re.compile(r"^(\d+)\s*(day|week|month|year)s?(\s+after\s+completion)?$")


class Unit(Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class Mode(Enum):
    """Where the next occurrence is measured from."""

    FROM_DUE = "from_due"
    FROM_COMPLETION = "from_completion"


_UNIT_LETTERS = {"d": Unit.DAY, "w": Unit.WEEK, "m": Unit.MONTH, "y": Unit.YEAR}


@dataclass(frozen=True)
class RecurrenceRule:
    """A normalized recurrence rule, e.g. every 2 weeks after completion."""

    amount: int
    unit: Unit
    mode: Mode

    def interval(self, times: int = 1) -> relativedelta:
        """The rule's step, multiplied `times` over."""
        return relativedelta(**{f"{self.unit.value}s": self.amount * times})

    def describe(self) -> str:
        """Human-readable form of the rule."""
        if self.amount == 1:
            text = f"every {self.unit.value}"
        else:
            text = f"every {self.amount} {self.unit.value}s"
        if self.mode is Mode.FROM_COMPLETION:
            text += " after completion"
        return text


def parse_recurrence(text: object) -> RecurrenceRule | None:
    """
    Parse a recurrence rule string.

    Shorthand: "1w", "3d", "2mc" (trailing c = after completion).
    Longform: "1 week", "3 days", "2 months after completion".

    Returns None for anything that is not a valid rule. Never raises.
    """
    if not isinstance(text, str):
        return None

    normalized = text.strip().lower()
    if not normalized:
        return None

    match = _SHORTHAND.match(normalized)
    if match:
        unit = _UNIT_LETTERS[match.group(2)]
    else:
        match = _LONGFORM.match(normalized)
        if not match:
            return None
        unit = Unit(match.group(2))

    amount = int(match.group(1))
    if amount <= 0:
        return None

    mode = Mode.FROM_COMPLETION if match.group(3) else Mode.FROM_DUE
    return RecurrenceRule(amount=amount, unit=unit, mode=mode)


def add_interval(value: datetime, rule: RecurrenceRule, times: int = 1) -> datetime:
    """
    Step `value` forward by the rule's interval, `times` over.

    Months and years clamp to the end of shorter months (Jan 31 + 1 month
    = Feb 28). Multiples are always taken from `value` itself, so repeated
    stepping does not drift after a clamped month.
    """
    return value + rule.interval(times)


def next_due_date(
    current_due: str | date | datetime,
    completion_time: str | date | datetime,
    rule: RecurrenceRule,
    now: datetime | None = None,
) -> str:
    """
    Compute the due date that follows a completion.

    FROM_COMPLETION: one interval after the completion date, even if that is
    already in the past. A timed due keeps its time of day.
    FROM_DUE: intervals after the current due until the result is strictly
    after `now`.

    The result has the precision of `current_due` (date-only or timestamp).
    Raises ValueError if either date is unreadable.
    """
    due = parse_moment(current_due)
    now = now or datetime.now()

    if rule.mode is Mode.FROM_COMPLETION:
        completed = parse_moment(completion_time).value
        if due.has_time:
            base = datetime.combine(completed.date(), due.value.timetz())
        else:
            base = datetime.combine(completed.date(), time())
        return due.with_value(add_interval(base, rule)).render()

    steps = 1
    candidate = due.with_value(add_interval(due.value, rule, steps))
    while not is_after(candidate, now):
        steps += 1
        candidate = due.with_value(add_interval(due.value, rule, steps))

    if steps > 1:
        logger.debug(f"Caught up {steps} intervals from {due.render()} to {candidate.render()}")
    return candidate.render()


def missed_occurrences(
    current_due: str | date | datetime,
    rule: RecurrenceRule,
    now: datetime | None = None,
) -> list[str]:
    """
    List occurrences that fell due before `now` and were never acted on.

    Starts with `current_due` itself and continues with each later
    occurrence strictly before `now`, oldest first. Empty for
    FROM_COMPLETION rules or when the due date is not in the past.
    Raises ValueError if the due date is unreadable.
    """
    if rule.mode is Mode.FROM_COMPLETION:
        return []

    due = parse_moment(current_due)
    now = now or datetime.now()
    if not is_before(due, now):
        return []

    missed = [due.render()]
    steps = 1
    while True:
        occurrence: Moment = due.with_value(add_interval(due.value, rule, steps))
        if not is_before(occurrence, now):
            break
        if len(missed) >= MAX_MISSED_OCCURRENCES:
            logger.warning(
                f"Stopped listing missed occurrences of {due.render()} at {MAX_MISSED_OCCURRENCES}"
            )
            break
        missed.append(occurrence.render())
        steps += 1

    return missed
