"""Tool execution for chat sessions.

This module resolves tool calls requested by the model to :class:`Tool`
objects, runs them and records the results in the session memory.
"""

import json
from typing import TYPE_CHECKING, Any

from ..exceptions import ToolExecutionError, ToolValidationError
from ..logging import get_logger
from ..tool_response import ToolResponse
from ..tools.base import Tool
from ..types import ToolCall

if TYPE_CHECKING:
    from .memory_manager import MemoryManager

logger = get_logger(__name__)


def format_result(result: Any) -> str:
    """Render a tool's return value as the text fed back to the model."""
    if isinstance(result, str):
        return result
    if isinstance(result, ToolResponse):
        return result.to_json()
    try:
        return json.dumps(result, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(result)


class ToolExecutor:
    """Runs the tool calls of one model turn.

    Tools are looked up by qualified name. Unknown tools and argument
    validation failures are reported back to the model so it can correct
    itself; an exception raised by the tool itself aborts the run as a
    :class:`ToolExecutionError`.
    """

    def __init__(self, tools: list[Tool] | None = None):
        self.tools: dict[str, Tool] = {tool.qualified_name: tool for tool in tools or []}

    def get_tool(self, name: str) -> Tool | None:
        return self.tools.get(name)

    def has_tool(self, name: str) -> bool:
        return name in self.tools

    def execute_single_tool(self, tool: Tool, arguments: dict[str, Any]) -> str:
        """Execute a single tool and return the result as text.

        Raises:
            ToolValidationError: If the arguments do not satisfy the schema.
            ToolExecutionError: If the tool raised.
        """
        tool.validate(arguments)
        try:
            result = tool.handler(**arguments)
        except Exception as e:
            raise ToolExecutionError(tool.qualified_name, e) from e
        return format_result(result)

    def execute_tool_calls(self, tool_calls: list[ToolCall], memory: "MemoryManager") -> None:
        """Execute tool calls in order and add their results to memory.

        Raises:
            ToolExecutionError: If a tool raised.
        """
        for tool_call in tool_calls:
            tool = self.tools.get(tool_call.name)
            if tool is None:
                logger.warning(f"model requested unknown tool '{tool_call.name}'")
                memory.add_tool_result(tool_call.id, tool_call.name, f"Tool '{tool_call.name}' not found")
                continue

            logger.info(f"executing tool {tool_call.name} with args: {tool_call.arguments}")
            try:
                result = self.execute_single_tool(tool, tool_call.arguments)
            except ToolValidationError as e:
                logger.warning(str(e))
                result = f"Invalid arguments: {'; '.join(e.errors)}"
            logger.debug(f"tool {tool_call.name} returned: {result}")
            memory.add_tool_result(tool_call.id, tool_call.name, result)
