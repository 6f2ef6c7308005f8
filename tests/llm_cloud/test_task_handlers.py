"""
Tests for the task tool handlers in `llm_cloud/tools/handlers.py`, run through the executor
against the in-memory task backend.
"""

import json

import pytest

from shared.models import ToolInvocation
from task_api import TaskApiError


def run(executor, name, **arguments):
    return executor.run_tool(ToolInvocation(id="call", name=name, arguments=json.dumps(arguments)))


def test_create_task_reports_content_and_project(executor, task_client):
    result = run(executor, "createTask", content="buy milk")

    assert result == 'Created task "buy milk" in project "Inbox".'
    assert [t["content"] for t in task_client.get_tasks()] == ["buy milk"]


def test_create_task_with_due_string(executor):
    result = run(executor, "createTask", content="call mom", dueString="tomorrow", labels=["family"])

    assert result == 'Created task "call mom" due tomorrow in project "Inbox".'


def test_create_task_ignores_project_lookup_failure(executor, task_client, monkeypatch):
    def missing_project(project_id):
        raise TaskApiError("Project not found", status_code=404)

    monkeypatch.setattr(task_client, "get_project", missing_project)

    result = run(executor, "createTask", content="buy milk")

    assert result == 'Created task "buy milk".'


def test_list_tasks_empty_is_verbatim(executor):
    assert run(executor, "listTasks") == "You have no tasks in your Todoist."


def test_list_tasks_empty_with_filter_is_verbatim(executor, task_client):
    task_client.create_task("someday")

    assert run(executor, "listTasks", filter="today") == "You have no tasks in your Todoist."


def test_list_tasks_shows_first_five_and_counts_rest(executor, task_client):
    for i in range(7):
        task_client.create_task(f"task {i}", due_string="today" if i == 0 else None)

    result = run(executor, "listTasks")

    lines = result.splitlines()
    assert lines[0] == "Found 7 tasks:"
    assert lines[1] == "- task 0 (due today)"
    assert lines[5] == "- task 4"
    assert lines[6] == "...and 2 more."


def test_list_single_task(executor, task_client):
    task_client.create_task("water plants")

    assert run(executor, "listTasks") == "Found 1 task:\n- water plants"


def test_complete_task_by_partial_name(executor, task_client):
    task_client.create_task("Buy milk")

    result = run(executor, "completeTask", taskName="milk")

    assert result == 'Completed task "Buy milk".'
    assert task_client.get_tasks() == []


def test_first_match_wins_and_others_are_counted(executor, task_client):
    task_client.create_task("buy milk")
    task_client.create_task("buy oat milk")

    result = run(executor, "deleteTask", taskName="MILK")

    assert result == 'Deleted task "buy milk". Note: 1 other task also matched "MILK".'
    assert [t["content"] for t in task_client.get_tasks()] == ["buy oat milk"]


@pytest.mark.parametrize("tool", ["deleteTask", "completeTask", "updateTask"])
def test_blank_task_name_touches_nothing(executor, task_client, tool):
    task_client.create_task("Pay rent")
    task_client.create_task("Buy milk")

    result = run(executor, tool, taskName="   ", content="renamed")

    assert result.startswith(f"Error: Invalid arguments for tool '{tool}'")
    assert [t["content"] for t in task_client.get_tasks()] == ["Pay rent", "Buy milk"]


def test_task_name_is_trimmed(executor, task_client):
    task_client.create_task("buy milk")

    assert run(executor, "completeTask", taskName="  milk ") == 'Completed task "buy milk".'


def test_create_blank_task_is_rejected(executor, task_client):
    result = run(executor, "createTask", content="  ")

    assert result.startswith("Error: Invalid arguments for tool 'createTask'")
    assert task_client.get_tasks() == []


def test_delete_twice_reports_no_match(executor, task_client):
    task_client.create_task("buy milk")

    first = run(executor, "deleteTask", taskName="milk")
    second = run(executor, "deleteTask", taskName="milk")

    assert first == 'Deleted task "buy milk".'
    assert second == 'No task found matching "milk".'
    assert not second.startswith("Error")


def test_update_task_changes_fields(executor, task_client):
    created = task_client.create_task("buy milk")

    result = run(executor, "updateTask", taskName="milk", content="buy bread", dueString="tomorrow", priority=4)

    assert result == 'Updated task "buy milk": renamed to "buy bread", due tomorrow, priority 4.'
    updated = task_client.get_tasks()[0]
    assert updated["id"] == created["id"]
    assert updated["content"] == "buy bread"
    assert updated["priority"] == 4


def test_update_without_changes(executor, task_client):
    task_client.create_task("buy milk")

    assert run(executor, "updateTask", taskName="milk") == 'No changes were requested for task "buy milk".'


def test_update_no_match(executor):
    assert run(executor, "updateTask", taskName="milk", priority=2) == 'No task found matching "milk".'


def test_get_projects(executor):
    assert run(executor, "getProjects") == "Your projects: Inbox."


def test_get_projects_empty(executor, task_client):
    task_client._projects.clear()

    assert run(executor, "getProjects") == "You have no projects."
