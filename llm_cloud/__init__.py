"""Top-level package exports for llm_cloud.

This package holds the LLM-facing infrastructure:
    • provider.py – OpenAI-compatible client configuration per LLM provider
    • tools/      – Task tool definitions, registry & execution

The conversation loop itself lives in core/orchestrator.py
"""

from .tools import (
    Tool,
    ToolManager,
    ToolExecutor,
    tool_manager,
    tool_executor,
)

__all__ = [
    "Tool",             # Core classes
    "ToolManager",
    "ToolExecutor",
    "tool_manager",     # Global instances
    "tool_executor",
]
