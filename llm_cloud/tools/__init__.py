"""
Initializes the tools package, sets up ToolManager, the task backend client,
ToolExecutor, and registers all tools from handlers.py.

This module wires the tool system to a task backend client instance. The client is
built by `task_api.make_task_client`, which returns the Todoist REST client by default
and the in-memory mock when TASK_BACKEND=mock, so the application can run end-to-end
without a Todoist account while remaining pluggable.
"""

import logging

from config import CONFIG
from task_api import make_task_client

# Import core components from .core
from .core import ToolManager, ToolExecutor, Tool, DuplicateToolError, ToolNotFoundError

# Import the registration function from .handlers
from .handlers import register_all_tools

# ---------------------------------------------------------------------------
# Global instances – explicit dependencies
# ---------------------------------------------------------------------------

# 1. Instantiate task backend client
task_client_instance = make_task_client(CONFIG)
logging.info("Task client instantiated in tools package (%s).", type(task_client_instance).__name__)

# 2. Instantiate ToolManager
tool_manager = ToolManager()
logging.info("ToolManager instantiated in tools package.")

# 3. Register all tools using the function from handlers.py.
# A DuplicateToolError here is fatal and stops startup.
register_all_tools(tool_manager)

# 4. Instantiate ToolExecutor with the manager and client
tool_executor = ToolExecutor(tool_manager, task_client_instance)
logging.info("ToolExecutor instantiated in tools package.")

# --- Define what's available when importing from llm_cloud.tools ---
__all__ = [
    'Tool',
    'ToolManager',
    'ToolExecutor',
    'DuplicateToolError',
    'ToolNotFoundError',
    'tool_manager',
    'tool_executor',
    'task_client_instance',
    'get_tool_definitions'
]

def get_tool_definitions() -> list:
    """
    Convenience function to get tool definitions from the global tool_manager.
    """
    if tool_manager:
        return tool_manager.get_definitions()
    return []

logging.info("llm_cloud.tools package fully initialized with %d tools.", len(tool_manager))
