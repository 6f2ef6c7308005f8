"""
Todoist REST v2 client.

Talks to https://api.todoist.com/rest/v2 with a bearer token. Every request
carries an explicit timeout from config.json (task_api.timeout) so a slow backend
can never hang a voice request. Failures are raised as `TaskApiError`
(`TaskApiTimeoutError` for timeouts) with the HTTP status and a truncated body.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from monitoring.metrics import TASK_API_REQUEST_TIME, timed
from .base import TaskApiClient, TaskApiError, TaskApiTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.todoist.com/rest/v2"


class TodoistClient(TaskApiClient):
    """
    `TaskApiClient` backed by the Todoist REST API.

    Args:
        api_key (str): Todoist API token, sent as `Authorization: Bearer <token>`.
        base_url (str): REST base URL; overridable for tests and proxies.
        timeout (float): Per-request timeout in seconds.
        session (requests.Session, optional): Injected session, mainly for tests.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ValueError("A Todoist API token is required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })

    def _request(self, method: str, path: str, endpoint: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug(f"[TodoistClient] {method} {path}")
        try:
            with timed(TASK_API_REQUEST_TIME, endpoint=endpoint):
                response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            raise TaskApiTimeoutError(f"Todoist request timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise TaskApiError(f"Network error calling Todoist: {exc}") from exc

        if not response.ok:
            body = response.text[:200]
            logger.error(f"[TodoistClient] {method} {path} failed with status {response.status_code}: {body}")
            raise TaskApiError(
                f"Todoist request failed with status {response.status_code}",
                status_code=response.status_code,
                details=body,
            )

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise TaskApiError(
                f"Invalid JSON from Todoist: {exc}",
                status_code=response.status_code,
                details=response.text[:200],
            ) from exc

    def get_tasks(self, filter_query: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"filter": filter_query} if filter_query else None
        return self._request("GET", "/tasks", "get_tasks", params=params) or []

    def create_task(
        self,
        content: str,
        due_string: Optional[str] = None,
        labels: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"content": content}
        if due_string:
            payload["due_string"] = due_string
        if labels:
            payload["labels"] = labels
        return self._request("POST", "/tasks", "create_task", json=payload)

    def update_task(self, task_id: str, **fields: Any) -> Dict[str, Any]:
        payload = {key: value for key, value in fields.items() if value is not None}
        return self._request("POST", f"/tasks/{task_id}", "update_task", json=payload)

    def close_task(self, task_id: str) -> None:
        self._request("POST", f"/tasks/{task_id}/close", "close_task")

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}", "delete_task")

    def get_projects(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/projects", "get_projects") or []

    def get_project(self, project_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/projects/{project_id}", "get_project")
