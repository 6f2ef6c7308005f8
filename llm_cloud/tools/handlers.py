# llm_cloud/tools/handlers.py
"""
Handlers for the Todoist task tools and tool registration logic.

This module centralizes tool handler implementations that interact with the task
backend client so the LLM has a coherent toolbox. Each handler receives arguments
already validated against its pydantic model, delegates to the injected
`TaskApiClient`, and returns a short human-readable summary suitable for a
follow-up completion (the reply is eventually spoken, so results are plain
sentences rather than JSON dumps). Backend failures are raised as `TaskApiError`
and converted to tool results by the executor.

Tasks addressed by name (complete, update, delete) are matched with a
case-insensitive substring search over all active tasks; the first match in the
backend's order wins. When several tasks match, the result says how many others
also matched so the model can ask the user to be more specific.

The `register_all_tools` function wires handlers into the shared `ToolManager`.
"""

import logging
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, Field, StringConstraints

from task_api import TaskApiClient, TaskApiError
from .core import Tool, ToolManager

logger = logging.getLogger(__name__)

# Maximum number of tasks spelled out by listTasks; the rest are only counted.
LIST_LIMIT = 5

NO_TASKS_MESSAGE = "You have no tasks in your Todoist."

# ---------------------------------------------------------------------------
# Argument models -----------------------------------------------------------
# ---------------------------------------------------------------------------

# Blank names are rejected after stripping; an empty needle would match every task.
NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CreateTaskArgs(BaseModel):
    content: NonBlankStr
    dueString: Optional[str] = None
    labels: Optional[List[str]] = None


class ListTasksArgs(BaseModel):
    filter: Optional[str] = None


class TaskReferenceArgs(BaseModel):
    taskName: NonBlankStr


class UpdateTaskArgs(TaskReferenceArgs):
    content: Optional[str] = None
    dueString: Optional[str] = None
    priority: Optional[int] = Field(None, ge=1, le=4)
    labels: Optional[List[str]] = None


class NoArgs(BaseModel):
    pass

# ---------------------------------------------------------------------------
# Formatting helpers --------------------------------------------------------
# ---------------------------------------------------------------------------

def _format_due(task: Dict[str, Any]) -> Optional[str]:
    due = task.get("due") or {}
    return due.get("string") or due.get("date")


def _describe_task(task: Dict[str, Any]) -> str:
    due = _format_due(task)
    return f"{task.get('content', '')} (due {due})" if due else task.get("content", "")


def _find_matching_tasks(api_client: TaskApiClient, task_name: str) -> List[Dict[str, Any]]:
    needle = task_name.lower()
    return [task for task in api_client.get_tasks() if needle in task.get("content", "").lower()]


def _ambiguity_note(matches: List[Dict[str, Any]], task_name: str) -> str:
    others = len(matches) - 1
    if others <= 0:
        return ""
    plural = "task" if others == 1 else "tasks"
    return f' Note: {others} other {plural} also matched "{task_name}".'


def _no_match(task_name: str) -> str:
    return f'No task found matching "{task_name}".'

# ---------------------------------------------------------------------------
# Task actions --------------------------------------------------------------
# ---------------------------------------------------------------------------

def _create_task_handler(args: CreateTaskArgs, api_client: TaskApiClient) -> str:
    """Create a task and confirm it, naming the project it landed in when that can be resolved.

    Args:
        args (CreateTaskArgs): content, optional dueString and labels.
        api_client (TaskApiClient): The injected task backend client.

    Returns:
        str: e.g. 'Created task "buy milk" due tomorrow in project "Inbox".'
    """
    logger.info(f"[_create_task_handler] content={args.content!r}, due={args.dueString!r}, labels={args.labels}")
    task = api_client.create_task(args.content, due_string=args.dueString, labels=args.labels)

    summary = f'Created task "{task.get("content", args.content)}"'
    due = _format_due(task)
    if due:
        summary += f" due {due}"

    project_id = task.get("project_id")
    if project_id:
        try:
            project = api_client.get_project(project_id)
            summary += f' in project "{project["name"]}"'
        except (TaskApiError, KeyError) as exc:
            # The task exists either way; the project name is a nicety.
            logger.warning(f"[_create_task_handler] Could not resolve project {project_id}: {exc}")
    return summary + "."


def _list_tasks_handler(args: ListTasksArgs, api_client: TaskApiClient) -> str:
    """Summarize up to LIST_LIMIT matching tasks with due dates and count the rest."""
    logger.info(f"[_list_tasks_handler] filter={args.filter!r}")
    tasks = api_client.get_tasks(args.filter)
    if not tasks:
        return NO_TASKS_MESSAGE

    plural = "task" if len(tasks) == 1 else "tasks"
    lines = [f"Found {len(tasks)} {plural}:"]
    lines.extend(f"- {_describe_task(task)}" for task in tasks[:LIST_LIMIT])
    remaining = len(tasks) - LIST_LIMIT
    if remaining > 0:
        lines.append(f"...and {remaining} more.")
    return "\n".join(lines)


def _complete_task_handler(args: TaskReferenceArgs, api_client: TaskApiClient) -> str:
    matches = _find_matching_tasks(api_client, args.taskName)
    if not matches:
        return _no_match(args.taskName)
    task = matches[0]
    api_client.close_task(task["id"])
    return f'Completed task "{task["content"]}".' + _ambiguity_note(matches, args.taskName)


def _update_task_handler(args: UpdateTaskArgs, api_client: TaskApiClient) -> str:
    """Apply the requested changes to the first task whose content contains taskName."""
    matches = _find_matching_tasks(api_client, args.taskName)
    if not matches:
        return _no_match(args.taskName)
    task = matches[0]

    fields = {
        "content": args.content,
        "due_string": args.dueString,
        "priority": args.priority,
        "labels": args.labels,
    }
    fields = {key: value for key, value in fields.items() if value is not None}
    if not fields:
        return f'No changes were requested for task "{task["content"]}".'

    updated = api_client.update_task(task["id"], **fields) or {}

    changes = []
    if args.content is not None:
        changes.append(f'renamed to "{updated.get("content", args.content)}"')
    if args.dueString is not None:
        changes.append(f"due {_format_due(updated) or args.dueString}")
    if args.priority is not None:
        changes.append(f"priority {args.priority}")
    if args.labels is not None:
        changes.append(f"labels {', '.join(args.labels) or 'cleared'}")

    return f'Updated task "{task["content"]}": {", ".join(changes)}.' + _ambiguity_note(matches, args.taskName)


def _delete_task_handler(args: TaskReferenceArgs, api_client: TaskApiClient) -> str:
    matches = _find_matching_tasks(api_client, args.taskName)
    if not matches:
        return _no_match(args.taskName)
    task = matches[0]
    api_client.delete_task(task["id"])
    return f'Deleted task "{task["content"]}".' + _ambiguity_note(matches, args.taskName)


def _get_projects_handler(args: NoArgs, api_client: TaskApiClient) -> str:
    projects = api_client.get_projects()
    if not projects:
        return "You have no projects."
    return "Your projects: " + ", ".join(project.get("name", "") for project in projects) + "."

# ---------------------------------------------------------------------------
# Registration logic, to be called from __init__.py
# ---------------------------------------------------------------------------

_TASK_NAME_PARAM = {
    "type": "string",
    "description": (
        "Part of the task's text used to find it, e.g. 'milk' for 'Buy milk'. "
        "The first task containing this text (case-insensitive) is used."
    ),
}


def register_all_tools(tool_manager: ToolManager) -> None:
    """Registers all tools defined in this file with the provided ToolManager."""
    tool_manager.register(
        Tool(
            name="createTask",
            handler=_create_task_handler,
            description=(
                "Create a new task in Todoist. Use for any request to create, add, or make a task "
                "or to be reminded of something."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "content": {"type": "string", "description": "The content of the task, e.g. 'Buy milk'."},
                    "dueString": {"type": "string", "description": (
                        "Due date in natural language, e.g. 'tomorrow at 4pm' or 'every day'."
                    )},
                    "labels": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Labels to add to the task.",
                    },
                },
                "required": ["content"],
            },
            args_model=CreateTaskArgs,
        )
    )

    tool_manager.register(
        Tool(
            name="listTasks",
            handler=_list_tasks_handler,
            description=(
                "List tasks from Todoist. Use for any request to show, list, find, or get tasks."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "filter": {"type": "string", "description": (
                        "Optional Todoist filter query, e.g. 'today', 'overdue', 'p1 & next 7 days'. "
                        "Omit to list all tasks."
                    )},
                },
                "required": [],
            },
            args_model=ListTasksArgs,
        )
    )

    tool_manager.register(
        Tool(
            name="completeTask",
            handler=_complete_task_handler,
            description="Mark a task as complete (done, finished, checked off) by its name.",
            parameters={
                "type": "object",
                "properties": {"taskName": _TASK_NAME_PARAM},
                "required": ["taskName"],
            },
            args_model=TaskReferenceArgs,
        )
    )

    tool_manager.register(
        Tool(
            name="updateTask",
            handler=_update_task_handler,
            description=(
                "Change an existing task found by its name: rename it, reschedule it, "
                "change its priority or its labels."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "taskName": _TASK_NAME_PARAM,
                    "content": {"type": "string", "description": "New text for the task."},
                    "dueString": {"type": "string", "description": "New due date in natural language."},
                    "priority": {
                        "type": "integer",
                        "minimum": 1,
                        "maximum": 4,
                        "description": "Priority from 1 (normal) to 4 (urgent).",
                    },
                    "labels": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Replacement list of labels.",
                    },
                },
                "required": ["taskName"],
            },
            args_model=UpdateTaskArgs,
        )
    )

    tool_manager.register(
        Tool(
            name="deleteTask",
            handler=_delete_task_handler,
            description="Delete (remove) a task by its name.",
            parameters={
                "type": "object",
                "properties": {"taskName": _TASK_NAME_PARAM},
                "required": ["taskName"],
            },
            args_model=TaskReferenceArgs,
        )
    )

    tool_manager.register(
        Tool(
            name="getProjects",
            handler=_get_projects_handler,
            description="List the user's Todoist projects.",
            parameters={"type": "object", "properties": {}},
            args_model=NoArgs,
        )
    )

    logger.info("[register_all_tools] All task tools registered.")
