"""Completion workflow shared by the CLI and any other host.

A completion action reads a task document, decides whether missed
occurrences need a decision from the user, then appends ledger rows and
advances the due date. Nothing is written until both the new text and the
new due date have been computed.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from .config import Config
from .core.dates import parse_moment
from .core.ledger import Outcome, append_record
from .core.recurrence import missed_occurrences, next_due_date
from .core.tasks import TaskState, classify
from .ports.document_store import DocumentStore

logger = logging.getLogger(__name__)


class RecurringError(Exception):
    """Base class for errors reported to the caller of a completion action."""


class NotATaskError(RecurringError):
    """The document's properties do not mark it as a task."""


class MissingDueDateError(RecurringError):
    """The task has no due date, or one that cannot be read."""


class MissingRecurrenceError(RecurringError):
    """The task has no recurrence rule, or one that cannot be parsed."""


class DueDateOutOfRangeError(RecurringError):
    """Stepping the due date by the rule leaves the supported calendar range."""


class CompletionStatus(Enum):
    COMPLETED = "completed"  # current occurrence completed, due advanced
    AWAITING_DECISION = "awaiting_decision"  # several missed, nothing written
    RESOLVED = "resolved"  # missed occurrences recorded, due advanced
    RECORDED = "recorded"  # ledger row only, due untouched


@dataclass
class CompletionResult:
    """What a completion action did (or is waiting for)."""

    status: CompletionStatus
    next_due: str | None = None
    records_added: int = 0
    missed_dates: list[str] = field(default_factory=list)

    @property
    def needs_decision(self) -> bool:
        return self.status is CompletionStatus.AWAITING_DECISION


def _now_text(now: datetime) -> str:
    return now.isoformat(timespec="seconds")


class TaskCompleter:
    """
    Drives completions for task documents held in a DocumentStore.

    complete_current_occurrence() either finishes the action or returns an
    AWAITING_DECISION result listing the missed dates. In the latter case
    the caller asks the user whether those were done or skipped and calls
    resolve_missed_occurrences() with the answer. Abandoning the decision
    leaves the document as it was.
    """

    def __init__(self, store: DocumentStore, config: Config | None = None):
        self.store = store
        self.config = config or Config()
        self.ledger = self.config.ledger_format()

    def classify(self, doc: str) -> TaskState:
        """Classify a document from its current properties."""
        return classify(self.store.read_properties(doc), self.config)

    def _evaluate(self, doc: str) -> TaskState:
        state = self.classify(doc)
        if not state.is_task:
            raise NotATaskError(f"{doc} is not a task")
        if state.due_date is None or state.due_date == "":
            raise MissingDueDateError(f"No due date found for {doc}")
        try:
            parse_moment(state.due_date)
        except ValueError as e:
            raise MissingDueDateError(f"Unreadable due date {state.due_date!r} in {doc}") from e
        if state.recurrence is None:
            raise MissingRecurrenceError(f"No usable recurrence rule found for {doc}")
        return state

    def _missed(self, doc: str, state: TaskState, now: datetime) -> list[str]:
        try:
            return missed_occurrences(state.due_date, state.recurrence, now)
        except (ValueError, OverflowError) as e:
            raise DueDateOutOfRangeError(f"Cannot step the due date of {doc}: {e}") from e

    def _next_due(self, doc: str, state: TaskState, now: datetime) -> str:
        try:
            return next_due_date(state.due_date, now, state.recurrence, now=now)
        except (ValueError, OverflowError) as e:
            raise DueDateOutOfRangeError(f"Cannot step the due date of {doc}: {e}") from e

    def _apply(
        self,
        doc: str,
        state: TaskState,
        entries: list[tuple[Any, Outcome, Any]],
        now: datetime,
        status: CompletionStatus,
        missed: list[str] | None = None,
    ) -> CompletionResult:
        """Append ledger rows, then advance the due date."""
        next_due = self._next_due(doc, state, now)
        text = self.store.read_text(doc)
        for timestamp, outcome, due in entries:
            text = append_record(text, timestamp, outcome, self.ledger, due=due)

        self.store.write_text(doc, text)
        self.store.write_properties(doc, {self.config.due_property: next_due})

        logger.info(f"{doc}: recorded {len(entries)} occurrence(s), next due {next_due}")
        return CompletionResult(
            status=status,
            next_due=next_due,
            records_added=len(entries),
            missed_dates=missed or [],
        )

    def complete_current_occurrence(self, doc: str, now: datetime | None = None) -> CompletionResult:
        """
        Complete the task's current occurrence.

        Raises NotATaskError, MissingDueDateError, MissingRecurrenceError or
        DueDateOutOfRangeError before anything is written. If more than one
        occurrence was missed, returns an AWAITING_DECISION result instead of
        writing.
        """
        now = now or datetime.now()
        state = self._evaluate(doc)

        missed = self._missed(doc, state, now)
        if len(missed) > 1:
            logger.info(f"{doc}: {len(missed)} missed occurrences, waiting for a decision")
            return CompletionResult(status=CompletionStatus.AWAITING_DECISION, missed_dates=missed)

        return self._apply(
            doc,
            state,
            [(now, Outcome.COMPLETED, state.due_date)],
            now,
            CompletionStatus.COMPLETED,
        )

    def resolve_missed_occurrences(
        self,
        doc: str,
        decision: Outcome,
        now: datetime | None = None,
    ) -> CompletionResult:
        """
        Record every missed occurrence with the chosen outcome.

        Each row is stamped with its missed date. The due date then advances
        past `now`. With fewer than two missed occurrences there is nothing
        to decide and this behaves like complete_current_occurrence().
        """
        now = now or datetime.now()
        state = self._evaluate(doc)

        missed = self._missed(doc, state, now)
        if len(missed) < 2:
            return self._apply(
                doc,
                state,
                [(now, Outcome.COMPLETED, state.due_date)],
                now,
                CompletionStatus.COMPLETED,
            )

        entries = [(missed_date, decision, missed_date) for missed_date in missed]
        return self._apply(doc, state, entries, now, CompletionStatus.RESOLVED, missed)

    def record_completion(
        self,
        doc: str,
        outcome: Outcome = Outcome.COMPLETED,
        now: datetime | None = None,
    ) -> CompletionResult:
        """
        Append a single ledger row without touching the due date.

        For tasks whose recurrence rule is missing or unparseable.
        """
        now = now or datetime.now()
        state = self.classify(doc)
        if not state.is_task:
            raise NotATaskError(f"{doc} is not a task")

        due = state.due_date if isinstance(state.due_date, (str, date)) else None
        text = append_record(self.store.read_text(doc), now, outcome, self.ledger, due=due)
        self.store.write_text(doc, text)

        logger.info(f"{doc}: recorded one {outcome.value} occurrence")
        return CompletionResult(status=CompletionStatus.RECORDED, records_added=1)

    def sync_complete_time(self, doc: str, now: datetime | None = None) -> bool:
        """
        Keep the completion-time property in step with the done flag.

        Sets it when the task is done and it is empty, clears it to "" when
        the task is not done and it is set. Returns True if it was changed.
        """
        properties = self.store.read_properties(doc)
        state = classify(properties, self.config)
        if not state.is_task:
            return False

        prop = self.config.complete_time_property
        current = properties.get(prop)

        if state.is_done and not current:
            value = _now_text(now or datetime.now())
        elif not state.is_done and current:
            value = ""
        else:
            return False

        self.store.write_properties(doc, {prop: value})
        logger.debug(f"{doc}: {prop} set to {value!r}")
        return True

    def toggle_done(self, doc: str, now: datetime | None = None) -> bool:
        """Flip the done flag and stamp or clear the completion time. Returns the new flag."""
        state = self.classify(doc)
        if not state.is_task:
            raise NotATaskError(f"{doc} is not a task")

        done = not state.is_done
        self.store.write_properties(
            doc,
            {
                self.config.done_property: done,
                self.config.complete_time_property: _now_text(now or datetime.now()) if done else "",
            },
        )
        return done
