"""Tests for notification text formatting."""

from __future__ import annotations

from datetime import date

import pytest

from reminder_service.features.notifications.formatting import due_context, format_body
from reminder_service.features.tasks.models import Task

TODAY = date(2026, 3, 2)


@pytest.mark.parametrize(
    ("due", "expected"),
    [
        (None, None),
        (date(2026, 3, 1), "Overdue"),
        (date(2026, 3, 2), "Due today"),
        (date(2026, 3, 3), "Due tomorrow"),
        (date(2026, 3, 5), "Due in 3 days"),
        (date(2026, 3, 9), "Due in 7 days"),
        (date(2026, 3, 10), None),
    ],
)
def test_due_context(due: date | None, expected: str | None) -> None:
    assert due_context(due, TODAY) == expected


def test_body_is_title_alone_without_context() -> None:
    task = Task(user_id="u", title="Buy milk")

    assert format_body(task, TODAY) == "Buy milk"


def test_body_joins_project_and_due_on_second_line() -> None:
    task = Task(user_id="u", title="Buy milk", project_name="Errands", due_date=date(2026, 3, 2))

    assert format_body(task, TODAY) == "Buy milk\nErrands · Due today"


def test_body_with_only_due_date() -> None:
    task = Task(user_id="u", title="Buy milk", due_date=date(2026, 2, 20))

    assert format_body(task, TODAY) == "Buy milk\nOverdue"
