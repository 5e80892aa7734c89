"""Pure task classification - no I/O dependencies."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .recurrence import RecurrenceRule, parse_recurrence

if TYPE_CHECKING:
    from recurring.config import Config


@dataclass(frozen=True)
class TaskState:
    """What a document's properties say about it as a task."""

    is_task: bool
    recurrence: RecurrenceRule | None = None
    is_done: bool = False
    due_date: Any = None

    @property
    def is_recurring(self) -> bool:
        return self.is_task and self.recurrence is not None


NOT_A_TASK = TaskState(is_task=False)


def is_task(properties: Mapping[str, Any], type_property: str, type_value: str) -> bool:
    """A document is a task if its type property is, or lists, the task value."""
    if not properties or not type_property or not type_value:
        return False

    value = properties.get(type_property)
    if value is None:
        return False
    if value == type_value:
        return True
    if isinstance(value, Sequence) and not isinstance(value, str):
        return type_value in value
    return False


def classify(properties: Mapping[str, Any] | None, config: "Config") -> TaskState:
    """
    Project a document's properties onto a TaskState.

    Done is only true for a real boolean True; the string "true" does not
    count. The due value is passed through unvalidated.
    """
    if not properties or not is_task(properties, config.type_property, config.type_value):
        return NOT_A_TASK

    return TaskState(
        is_task=True,
        recurrence=parse_recurrence(properties.get(config.recur_property)),
        is_done=properties.get(config.done_property) is True,
        due_date=properties.get(config.due_property),
    )
