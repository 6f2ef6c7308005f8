"""Tests for the in-memory task backend used for local runs and tests."""

import datetime

import pytest

from task_api import MockTaskApiClient, TaskApiError

TODAY = datetime.date(2024, 5, 1)


@pytest.fixture
def client():
    return MockTaskApiClient(
        tasks=[
            {"content": "pay rent", "due": {"string": "Apr 30", "date": "2024-04-30"}, "labels": ["home"]},
            {"content": "buy milk", "due": {"string": "today", "date": "2024-05-01"}},
            {"content": "read book", "project_id": "work"},
        ],
        projects=[{"id": "inbox", "name": "Inbox"}, {"id": "work", "name": "Work"}],
        today=TODAY,
    )


def test_ids_are_assigned_in_order(client):
    assert [t["id"] for t in client.get_tasks()] == ["task-1", "task-2", "task-3"]


@pytest.mark.parametrize("query, expected", [
    ("today", ["buy milk"]),
    ("overdue", ["pay rent"]),
    ("search: MILK", ["buy milk"]),
    ("#work", ["read book"]),
    ("@home", ["pay rent"]),
])
def test_filters(client, query, expected):
    assert [t["content"] for t in client.get_tasks(query)] == expected


def test_unsupported_filter_is_rejected(client):
    with pytest.raises(TaskApiError) as exc_info:
        client.get_tasks("p1 & next 7 days")
    assert exc_info.value.status_code == 400


def test_closed_tasks_are_hidden(client):
    client.close_task("task-2")
    assert [t["content"] for t in client.get_tasks()] == ["pay rent", "read book"]


def test_delete_unknown_task_is_404(client):
    client.delete_task("task-1")
    with pytest.raises(TaskApiError) as exc_info:
        client.delete_task("task-1")
    assert exc_info.value.status_code == 404


def test_returned_tasks_are_copies(client):
    client.get_tasks()[0]["content"] = "changed"
    assert client.get_tasks()[0]["content"] == "pay rent"


def test_create_resolves_relative_due_dates(client):
    task = client.create_task("call mom", due_string="tomorrow")
    assert task["due"] == {"string": "tomorrow", "date": "2024-05-02", "is_recurring": False}
    assert task["project_id"] == "inbox"


def test_create_requires_content(client):
    with pytest.raises(TaskApiError):
        client.create_task("   ")
