"""
task_api package: backend-agnostic access to the task-management service.

The tool handlers speak to a small, stable interface while backend-specific details
(authentication, HTTP transport, response normalization) stay behind that boundary.

Included modules:
- base: The abstract `TaskApiClient` interface and the `TaskApiError` taxonomy.
- todoist_client: The production client for the Todoist REST v2 API (bearer token).
- mock_client: A deterministic, in-memory implementation used for local runs, demos
  and tests, so the whole assistant runs without a Todoist account.

`make_task_client()` selects the implementation from the TASK_BACKEND environment
variable ("todoist" by default, "mock" for the in-memory backend).
"""

import logging
import os
from typing import Optional

from .base import TaskApiClient, TaskApiError, TaskApiTimeoutError
from .mock_client import MockTaskApiClient
from .todoist_client import TodoistClient

logger = logging.getLogger(__name__)


def make_task_client(config: Optional[dict] = None) -> TaskApiClient:
    """
    Construct the active task backend client.

    Args:
        config (dict, optional): The global CONFIG mapping; only the "task_api"
            section is read (base_url, timeout).

    Returns:
        TaskApiClient: A Todoist client, or the in-memory mock when TASK_BACKEND=mock.
    """
    backend = os.getenv("TASK_BACKEND", "todoist").lower()
    if backend == "mock":
        logger.info("Task backend selected: mock")
        return MockTaskApiClient()

    if backend != "todoist":
        logger.warning("Unknown TASK_BACKEND '%s'; falling back to todoist.", backend)

    task_cfg = (config or {}).get("task_api", {}) or {}
    base_url = task_cfg.get("base_url", "https://api.todoist.com/rest/v2")
    logger.info("Task backend selected: todoist | base_url=%s", base_url)
    return TodoistClient(
        api_key=os.getenv("TODOIST_API_KEY", ""),
        base_url=base_url,
        timeout=task_cfg.get("timeout", 10),
    )


__all__ = [
    "TaskApiClient",
    "TaskApiError",
    "TaskApiTimeoutError",
    "TodoistClient",
    "MockTaskApiClient",
    "make_task_client",
]
