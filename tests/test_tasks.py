"""Tests for task classification."""

from datetime import date

import pytest

from recurring.config import Config
from recurring.core.recurrence import Mode, Unit
from recurring.core.tasks import classify, is_task


@pytest.fixture
def config():
    return Config()


class TestIsTask:
    def test_exact_value(self):
        assert is_task({"Type": "Task"}, "Type", "Task") is True

    def test_list_containing_value(self):
        assert is_task({"Type": ["Project", "Task"]}, "Type", "Task") is True

    def test_list_without_value(self):
        assert is_task({"Type": ["Project"]}, "Type", "Task") is False

    def test_other_value(self):
        assert is_task({"Type": "Note"}, "Type", "Task") is False

    def test_case_sensitive(self):
        assert is_task({"Type": "task"}, "Type", "Task") is False

    def test_substring_does_not_count(self):
        assert is_task({"Type": "Tasks"}, "Type", "Task") is False

    def test_missing_property(self):
        assert is_task({"Due": "2023-10-15"}, "Type", "Task") is False

    def test_empty_mapping(self):
        assert is_task({}, "Type", "Task") is False


class TestClassify:
    def test_recurring_task(self, config):
        state = classify(
            {"Type": "Task", "Due": "2023-10-15", "Recur": "1w", "Done": False},
            config,
        )
        assert state.is_task is True
        assert state.is_recurring is True
        assert state.recurrence.amount == 1
        assert state.recurrence.unit is Unit.WEEK
        assert state.recurrence.mode is Mode.FROM_DUE
        assert state.is_done is False
        assert state.due_date == "2023-10-15"

    def test_not_a_task_is_inert(self, config):
        state = classify({"Type": "Note", "Recur": "1w", "Done": True}, config)
        assert state.is_task is False
        assert state.recurrence is None
        assert state.is_done is False
        assert state.due_date is None

    def test_none_properties(self, config):
        assert classify(None, config).is_task is False

    def test_done_requires_real_boolean(self, config):
        assert classify({"Type": "Task", "Done": True}, config).is_done is True
        assert classify({"Type": "Task", "Done": "true"}, config).is_done is False
        assert classify({"Type": "Task", "Done": 1}, config).is_done is False

    def test_unparseable_rule_is_not_recurring(self, config):
        state = classify({"Type": "Task", "Recur": "whenever"}, config)
        assert state.is_task is True
        assert state.recurrence is None
        assert state.is_recurring is False

    def test_due_passed_through_unvalidated(self, config):
        assert classify({"Type": "Task", "Due": "soon"}, config).due_date == "soon"
        assert classify({"Type": "Task", "Due": date(2023, 10, 15)}, config).due_date == date(2023, 10, 15)

    def test_custom_property_names(self):
        config = Config(
            type_property="kind",
            type_value="chore",
            due_property="next",
            done_property="finished",
            recur_property="every",
        )
        state = classify(
            {"kind": ["chore"], "next": "2024-01-01", "every": "2 weeks", "finished": True},
            config,
        )
        assert state.is_task is True
        assert state.recurrence.amount == 2
        assert state.is_done is True
        assert state.due_date == "2024-01-01"
