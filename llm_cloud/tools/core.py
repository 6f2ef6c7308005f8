# llm_cloud/tools/core.py
"""
core.py – Defines the core data structures and classes for tool management and execution.
--------------------------------------------------------------------------------------
This module provides the fundamental building blocks for the tool system:
- Tool: Represents a single tool that the LLM can call.
- ToolManager: The registry. Holds exactly one Tool per name and advertises them.
- ToolExecutor: Runs a single tool invocation and always returns a string result.

Design notes:
1. Dependency Injection:
   - The task backend client is passed to tool handlers (not imported directly)
   - ToolManager is passed to ToolExecutor (not hardcoded)
   This makes testing easier and dependencies explicit.

2. Total conversion to results:
   - Unknown tools, malformed JSON, schema violations and backend failures all become
     a ToolResult string starting with "Error". A single bad tool call must never abort
     the rest of the conversation, so `run_tool` does not raise.
"""

import json
import logging
from typing import Callable, Any, Dict, List, Type

from pydantic import BaseModel, ValidationError

from monitoring.metrics import TOOL_EXECUTION_TIME, ERROR_COUNT, timed
from shared.models import ToolInvocation
from shared.utils import truncate_message_for_logging
from task_api import TaskApiClient, TaskApiError, TaskApiTimeoutError

logger = logging.getLogger(__name__)


class DuplicateToolError(ValueError):
    """Raised at startup when two tools are registered under the same name."""


class ToolNotFoundError(KeyError):
    """Raised by ToolManager.resolve for names that were never registered."""


class Tool:
    """Metadata wrapper around a callable tool. Represents a tool that can be called by the LLM.

    Args:
        name:        Unique, human-readable identifier advertised to the LLM (e.g. "createTask").
        handler:     Function that performs the work. Signature must accept
                     (args: <args_model instance>, api_client: TaskApiClient) and return str.
        description: Short text shown to the LLM.
        parameters:  JSON schema describing the arguments, advertised to the LLM.
        args_model:  Pydantic model the raw arguments are validated against before the
                     handler runs.
    """

    def __init__(
        self,
        name: str,
        handler: Callable[[BaseModel, TaskApiClient], str],
        description: str,
        parameters: Dict[str, Any],
        args_model: Type[BaseModel],
    ) -> None:
        self.name = name
        self.handler = handler
        self.description = description
        self.parameters = parameters
        self.args_model = args_model

    def describe(self) -> Dict[str, Any]:
        """Render the descriptor in the function-calling format of chat completion APIs."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolManager:
    """Manages tool registration and metadata retrieval.

    Populated once at startup and treated as read-only afterwards, so it can be shared
    by concurrent requests without locking.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Add a tool to the registry.

        Raises:
            DuplicateToolError: If a tool with the same name is already registered.
        """
        if tool.name in self._tools:
            raise DuplicateToolError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def get_definitions(self) -> List[Dict[str, Any]]:
        """Return the JSON schema list of function descriptions expected by the LLM chat endpoint,
        in registration order."""
        return [t.describe() for t in self._tools.values()]

    describe_all = get_definitions

    def resolve(self, tool_name: str) -> Tool:
        """Retrieve a registered tool by its unique name.

        Raises:
            ToolNotFoundError: If no tool with the given name is registered.
        """
        try:
            return self._tools[tool_name]
        except KeyError:
            raise ToolNotFoundError(tool_name) from None

    def get_tool_names(self) -> List[str]:
        return list(self._tools)

    def __len__(self) -> int:
        return len(self._tools)


class ToolExecutor:
    """Executes tool invocations requested by the LLM, including argument parsing and error handling.

    Key functionalities:
    1. Uses a ToolManager to find the requested tool.
    2. Parses the JSON argument string into a dictionary.
    3. Validates the arguments against the tool's pydantic model.
    4. Invokes the handler, injecting the task backend client.
    5. Converts every failure into a descriptive result string.
    """

    def __init__(self, tool_manager: ToolManager, api_client: TaskApiClient) -> None:
        self.tool_manager = tool_manager
        self.api_client: TaskApiClient = api_client

    def run_tool(self, invocation: ToolInvocation) -> str:
        """Execute one tool invocation and return its result string.

        Args:
            invocation (ToolInvocation): The tool call emitted by the LLM.

        Returns:
            str: The handler's human-readable summary, or a failure description
                 starting with "Error" when the call could not be completed.
        """
        tool_name = invocation.name
        raw_arguments = invocation.arguments or "{}"
        logger.info(
            f"[run_tool] Running tool '{tool_name}' (call {invocation.id}) with raw arguments: "
            f"{truncate_message_for_logging(raw_arguments, 200)}"
        )

        try:
            tool = self.tool_manager.resolve(tool_name)
        except ToolNotFoundError:
            logger.error(f"[run_tool] Unknown tool requested by LLM: '{tool_name}'")
            ERROR_COUNT.labels(type='tool', location='unknown_tool').inc()
            return f"Error: Unknown tool '{tool_name}'. Available tools: {', '.join(self.tool_manager.get_tool_names())}."

        try:
            raw_args = json.loads(raw_arguments)
            if not isinstance(raw_args, dict):
                raise ValueError("arguments must be a JSON object")
        except ValueError as exc: # JSONDecodeError is a ValueError
            logger.error(f"[run_tool] Failed to parse arguments for tool '{tool_name}': {exc}")
            return f"Error: Malformed arguments provided for tool '{tool_name}'. Arguments must be a valid JSON object."

        try:
            args = tool.args_model.model_validate(raw_args)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc']) or 'arguments'}: {err['msg']}"
                for err in exc.errors()
            )
            logger.error(f"[run_tool] Invalid arguments for tool '{tool_name}': {problems}")
            return f"Error: Invalid arguments for tool '{tool_name}': {problems}"

        try:
            with timed(TOOL_EXECUTION_TIME, tool_name=tool_name):
                result = tool.handler(args, self.api_client)
        except TaskApiTimeoutError as exc:
            logger.error(f"[run_tool] Task backend timed out during '{tool_name}': {exc}")
            ERROR_COUNT.labels(type='tool', location=tool_name).inc()
            return f"Error: Todoist did not respond in time while running '{tool_name}'. Please try again."
        except TaskApiError as exc:
            status = f" (status {exc.status_code})" if exc.status_code else ""
            logger.error(f"[run_tool] Task backend error during '{tool_name}'{status}: {exc} {exc.details}")
            ERROR_COUNT.labels(type='tool', location=tool_name).inc()
            return f"Error: Todoist request failed while running '{tool_name}'{status}: {exc}"
        except Exception as exc: # Handler bugs must not abort the conversation either
            logger.exception(f"[run_tool] Error executing tool '{tool_name}' with args {args}")
            ERROR_COUNT.labels(type='tool', location=tool_name).inc()
            return f"Error executing tool '{tool_name}': {exc}"

        logger.info(
            f"[run_tool] Tool '{tool_name}' succeeded: {truncate_message_for_logging(result, 200)}"
        )
        return result
