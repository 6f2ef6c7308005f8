"""API tests for the task pass-through in `api/tasks.py`."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from api.tasks import get_task_client
from main import app
from task_api import TaskApiError

client = TestClient(app)


@pytest.fixture
def backend(task_client):
    app.dependency_overrides[get_task_client] = lambda: task_client
    yield task_client
    app.dependency_overrides.pop(get_task_client, None)


def test_list_tasks(backend):
    backend.create_task("buy milk", due_string="today")

    resp = client.get("/api/tasks")

    assert resp.status_code == 200
    assert [t["content"] for t in resp.json()["tasks"]] == ["buy milk"]


def test_list_tasks_with_filter(backend):
    backend.create_task("buy milk", due_string="today")
    backend.create_task("someday")

    resp = client.get("/api/tasks", params={"filter": "today"})

    assert [t["content"] for t in resp.json()["tasks"]] == ["buy milk"]


def test_create_task(backend):
    resp = client.post("/api/tasks", json={"content": "call mom", "due_string": "tomorrow"})

    assert resp.status_code == 200
    assert resp.json()["task"]["content"] == "call mom"
    assert backend.get_tasks()[0]["due"]["string"] == "tomorrow"


def test_create_task_requires_content(backend):
    resp = client.post("/api/tasks", json={"content": "  "})

    assert resp.status_code == 400
    assert backend.get_tasks() == []


def test_backend_failure_is_502():
    failing = MagicMock()
    failing.get_tasks.side_effect = TaskApiError("Todoist request failed with status 401", status_code=401, details="Unauthorized")
    app.dependency_overrides[get_task_client] = lambda: failing
    try:
        resp = client.get("/api/tasks")
    finally:
        app.dependency_overrides.pop(get_task_client, None)

    assert resp.status_code == 502
    assert resp.json() == {"error": "Failed to fetch tasks", "details": "Unauthorized"}
