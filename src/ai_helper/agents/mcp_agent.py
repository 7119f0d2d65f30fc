"""Agent operating the tools of one MCP server."""

from typing import Any

from ..logging import get_logger
from ..prompts import MCP_AGENT_BACKSTORY
from ..tools.base import Tool
from ..tools.mcp_tools import McpTools
from .base import BaseAgent

logger = get_logger(__name__)


class McpAgent(BaseAgent):
    """Agent bound to one MCP server.

    The loader registers one partial of this class per configured server,
    so every instance of a server's agent shares the server's tool group.

    Args:
        name: Registry name of the agent, also used as its role.
        toolset: Tool group of the server.
        **kwargs: Passed to :class:`BaseAgent`.
    """

    def __init__(self, name: str, toolset: McpTools, **kwargs: Any):
        super().__init__(**kwargs)
        self.name = name
        self.toolset = toolset
        self._backstory: str | None = None

    def role(self) -> str:
        return self.name

    def available_tool_classes(self) -> list[Tool]:
        try:
            return self.toolset.tool_classes()
        except Exception as e:
            logger.error(f"Error loading tools for MCP server '{self.toolset.server_name}': {e}")
            return []

    def backstory(self) -> str:
        if self._backstory is None:
            server_name = self.toolset.server_name
            backstory = MCP_AGENT_BACKSTORY.format(server_name=server_name)
            tools = self.available_tool_classes()
            if tools:
                lines = "\n".join(f"- {tool.description}" for tool in tools)
                backstory += f"\n\nAvailable tools ({server_name}):\n{lines}"
            else:
                backstory += f"\n\nNo tools available at the moment for {server_name}."
            self._backstory = backstory
        return self._backstory
