"""Functional core - pure business logic with no I/O."""

from .recurrence import (
    Mode,
    RecurrenceRule,
    Unit,
    missed_occurrences,
    next_due_date,
    parse_recurrence,
)
from .tasks import TaskState, classify, is_task
from .ledger import (
    LedgerFormat,
    LedgerRow,
    Outcome,
    append_record,
    format_timestamp,
    next_sequence_number,
    read_ledger,
)

__all__ = [
    # Recurrence
    "Mode",
    "RecurrenceRule",
    "Unit",
    "missed_occurrences",
    "next_due_date",
    "parse_recurrence",
    # Tasks
    "TaskState",
    "classify",
    "is_task",
    # Ledger
    "LedgerFormat",
    "LedgerRow",
    "Outcome",
    "append_record",
    "format_timestamp",
    "next_sequence_number",
    "read_ledger",
]
