"""
Deterministic in-memory task backend for local runs, demos, and tests.

This module provides a reference implementation of the backend-agnostic interface
so the assistant can be exercised end-to-end without a Todoist account or network
access. Tasks and projects live in plain dictionaries and every operation mutates
that state the same way the real backend would, including raising `TaskApiError`
with a 404 status for unknown ids. Select it with TASK_BACKEND=mock.

Filter support is deliberately small: "today", "overdue", "search: <text>",
"#<project name>" and "@<label>". Anything else is rejected with a 400, like the
real backend does for filters it cannot parse.
"""

import copy
import datetime
import itertools
from typing import Any, Dict, List, Optional

from .base import TaskApiClient, TaskApiError


class MockTaskApiClient(TaskApiClient):
    """
    In-memory mock implementation of `TaskApiClient` with deterministic behavior.

    Args:
        tasks (List[Dict[str, Any]], optional): Initial tasks. Missing fields are filled
            with Todoist-like defaults. Defaults to an empty task list.
        projects (List[Dict[str, Any]], optional): Initial projects. Defaults to a single
            "Inbox" project with id "inbox".
        today (datetime.date, optional): Fixed "today" used for date filters.
    """

    def __init__(
        self,
        tasks: Optional[List[Dict[str, Any]]] = None,
        projects: Optional[List[Dict[str, Any]]] = None,
        today: Optional[datetime.date] = None,
    ) -> None:
        self._ids = itertools.count(1)
        self._today = today or datetime.date.today()
        self._projects: Dict[str, Dict[str, Any]] = {}
        for project in projects if projects is not None else [{"id": "inbox", "name": "Inbox"}]:
            self._projects[str(project["id"])] = dict(project)
        self._tasks: Dict[str, Dict[str, Any]] = {}
        for task in tasks or []:
            self._store(dict(task))

    def _default_project_id(self) -> Optional[str]:
        return next(iter(self._projects), None)

    def _store(self, task: Dict[str, Any]) -> Dict[str, Any]:
        task.setdefault("id", f"task-{next(self._ids)}")
        task["id"] = str(task["id"])
        task.setdefault("project_id", self._default_project_id())
        task.setdefault("due", None)
        task.setdefault("labels", [])
        task.setdefault("priority", 1)
        task.setdefault("is_completed", False)
        self._tasks[task["id"]] = task
        return task

    def _require(self, task_id: str) -> Dict[str, Any]:
        task = self._tasks.get(str(task_id))
        if task is None:
            raise TaskApiError("Task not found", status_code=404, details=str(task_id))
        return task

    def _due_date(self, task: Dict[str, Any]) -> Optional[datetime.date]:
        due = task.get("due") or {}
        if not due.get("date"):
            return None
        return datetime.date.fromisoformat(due["date"][:10])

    def _matches(self, task: Dict[str, Any], filter_query: str) -> bool:
        query = filter_query.strip().lower()
        if query == "today":
            due = self._due_date(task)
            return due is not None and due == self._today
        if query == "overdue":
            due = self._due_date(task)
            return due is not None and due < self._today
        if query.startswith("search:"):
            return query[len("search:"):].strip() in task["content"].lower()
        if query.startswith("#"):
            project = self._projects.get(str(task.get("project_id")), {})
            return project.get("name", "").lower() == query[1:].strip()
        if query.startswith("@"):
            return query[1:].strip() in [label.lower() for label in task.get("labels", [])]
        raise TaskApiError("Invalid filter", status_code=400, details=filter_query)

    def _due_for(self, due_string: str) -> Dict[str, Any]:
        offsets = {"today": 0, "tomorrow": 1}
        offset = offsets.get(due_string.strip().lower())
        date = (self._today + datetime.timedelta(days=offset)).isoformat() if offset is not None else None
        return {"string": due_string, "date": date, "is_recurring": False}

    def get_tasks(self, filter_query: Optional[str] = None) -> List[Dict[str, Any]]:
        active = [task for task in self._tasks.values() if not task["is_completed"]]
        if filter_query:
            active = [task for task in active if self._matches(task, filter_query)]
        return copy.deepcopy(active)

    def create_task(
        self,
        content: str,
        due_string: Optional[str] = None,
        labels: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        if not content or not content.strip():
            raise TaskApiError("Task content is required", status_code=400)
        task = self._store({
            "content": content,
            "due": self._due_for(due_string) if due_string else None,
            "labels": list(labels or []),
        })
        return copy.deepcopy(task)

    def update_task(self, task_id: str, **fields: Any) -> Dict[str, Any]:
        task = self._require(task_id)
        if fields.get("content") is not None:
            task["content"] = fields["content"]
        if fields.get("due_string") is not None:
            task["due"] = self._due_for(fields["due_string"])
        if fields.get("priority") is not None:
            task["priority"] = int(fields["priority"])
        if fields.get("labels") is not None:
            task["labels"] = list(fields["labels"])
        return copy.deepcopy(task)

    def close_task(self, task_id: str) -> None:
        self._require(task_id)["is_completed"] = True

    def delete_task(self, task_id: str) -> None:
        self._require(task_id)
        del self._tasks[str(task_id)]

    def get_projects(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(list(self._projects.values()))

    def get_project(self, project_id: str) -> Dict[str, Any]:
        project = self._projects.get(str(project_id))
        if project is None:
            raise TaskApiError("Project not found", status_code=404, details=str(project_id))
        return copy.deepcopy(project)
