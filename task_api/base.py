"""
Backend-agnostic client interface for the task-management service.

This module defines the abstract contract that any concrete task backend client
must fulfill in order to be used by the tool handlers. The design uses the
adapter pattern to separate the assistant's tool semantics from backend concerns
like authentication, HTTP transport and response normalization. The tool handlers
only depend on the methods below; Todoist is the production implementation and an
in-memory mock ships for local runs and tests.

Task dictionaries follow the Todoist REST v2 shape, which the rest of the code
relies on:
- id (str), content (str), project_id (str)
- due (dict or None) with at least "string" and optionally "date"
- labels (List[str]), priority (int, 1 normal to 4 urgent)
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class TaskApiError(Exception):
    """
    Raised when the task backend cannot fulfil a request.

    Covers non-2xx responses, network failures and invalid JSON bodies. The
    `status_code` is None when no HTTP response was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, details: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class TaskApiTimeoutError(TaskApiError):
    """Timeout-specific backend failure, distinguished so callers can report slowness."""


class TaskApiClient(ABC):
    """
    Abstract client defining the task operations the assistant needs.

    Implementations raise `TaskApiError` on failure; they never return error
    sentinels. The tool executor converts those exceptions into tool results so a
    failing backend call never aborts a conversation.
    """

    @abstractmethod
    def get_tasks(self, filter_query: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Return active tasks, optionally narrowed by a backend filter expression
        such as "today", "overdue" or "p1 & next 7 days".
        """
        raise NotImplementedError

    @abstractmethod
    def create_task(
        self,
        content: str,
        due_string: Optional[str] = None,
        labels: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Create a task and return it as stored by the backend."""
        raise NotImplementedError

    @abstractmethod
    def update_task(self, task_id: str, **fields: Any) -> Dict[str, Any]:
        """
        Update a task. Supported fields: content, due_string, priority, labels.

        Returns:
            Dict[str, Any]: The updated task.
        """
        raise NotImplementedError

    @abstractmethod
    def close_task(self, task_id: str) -> None:
        """Mark a task as completed."""
        raise NotImplementedError

    @abstractmethod
    def delete_task(self, task_id: str) -> None:
        """Delete a task permanently."""
        raise NotImplementedError

    @abstractmethod
    def get_projects(self) -> List[Dict[str, Any]]:
        """Return all projects as dictionaries with at least id and name."""
        raise NotImplementedError

    @abstractmethod
    def get_project(self, project_id: str) -> Dict[str, Any]:
        """Return a single project."""
        raise NotImplementedError
