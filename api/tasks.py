"""
api/tasks.py

Thin pass-through to the task backend, for clients that show the task list next to
the conversation.

Endpoints:
  - GET /tasks:  Lists active tasks, optionally narrowed with ?filter=<Todoist filter>.
  - POST /tasks: Creates a task from {"content", "due_string"?, "labels"?}.

Backend failures are returned as 502 {"error", "details"}.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from task_api import TaskApiClient, TaskApiError

# Get a logger instance for this module
logger = logging.getLogger(__name__)

router = APIRouter()


class CreateTaskRequest(BaseModel):
    content: Optional[str] = None
    due_string: Optional[str] = None
    labels: Optional[List[str]] = None


def get_task_client() -> TaskApiClient:
    """Dependency returning the task client shared with the LLM tools."""
    from llm_cloud.tools import task_client_instance
    return task_client_instance


def _backend_error(action: str, exc: TaskApiError) -> JSONResponse:
    logger.error(f"[tasks] Failed to {action}: {exc} (status {exc.status_code}) {exc.details}")
    return JSONResponse(
        {"error": f"Failed to {action}", "details": exc.details or str(exc)},
        status_code=502,
    )


@router.get("/tasks")
def get_tasks(filter: Optional[str] = None, client: TaskApiClient = Depends(get_task_client)):
    try:
        tasks = client.get_tasks(filter)
    except TaskApiError as e:
        return _backend_error("fetch tasks", e)
    return JSONResponse({"tasks": tasks})


@router.post("/tasks")
def create_task(body: CreateTaskRequest, client: TaskApiClient = Depends(get_task_client)):
    """
    Create a task.

    Returns:
        JSONResponse: 200 {"task": {...}}; 400 when content is missing; 502 on backend failure.
    """
    if not body.content or not body.content.strip():
        return JSONResponse({"error": "Task content is required"}, status_code=400)
    try:
        task = client.create_task(body.content, due_string=body.due_string, labels=body.labels)
    except TaskApiError as e:
        return _backend_error("create task", e)
    logger.info(f"[tasks] Created task {task.get('id')} via pass-through")
    return JSONResponse({"task": task})
