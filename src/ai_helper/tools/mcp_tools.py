"""Tools served by Model Context Protocol servers.

Each configured server becomes one tool group. The server's tool list is
fetched once and every entry is rebuilt with
:meth:`ParameterBuilder.from_json_schema`, so MCP tools look exactly like
tools declared in source.

The runtime is synchronous, so every call opens a short-lived client
session inside ``asyncio.run``.
"""

import asyncio
import functools
import os
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any

from mcp import ClientSession, StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamablehttp_client

from ..exceptions import ToolExecutionError
from ..logging import get_logger
from ..utils.text import snake_case
from .base import PLACEHOLDER_PARAMETER, ParameterBuilder, Tool

logger = get_logger(__name__)

SERVER_TYPES = ("stdio", "http", "sse")


@dataclass(frozen=True)
class McpServerConfig:
    """Connection settings of one MCP server."""
    name: str
    type: str
    command: str | None = None
    args: tuple[str, ...] = ()
    env: dict[str, str] = field(default_factory=dict)
    url: str | None = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def group(self) -> str:
        return f"mcp_{snake_case(self.name)}"


def _resolve_env(env: dict[str, str]) -> dict[str, str]:
    """Merge the server environment into ours, expanding ``${VAR}`` references."""
    full_env = os.environ.copy()
    for key, value in env.items():
        value = str(value)
        if value.startswith("${") and value.endswith("}"):
            full_env[key] = os.environ.get(value[2:-1], "")
        else:
            full_env[key] = value
    return full_env


class McpServerConnection:
    """Synchronous facade over an MCP client session."""

    def __init__(self, config: McpServerConfig):
        self.config = config

    async def _open(self, stack: AsyncExitStack) -> ClientSession:
        config = self.config
        if config.type == "stdio":
            command = config.command or config.args[0]
            args = list(config.args) if config.command else list(config.args[1:])
            params = StdioServerParameters(command=command, args=args, env=_resolve_env(config.env))
            read, write = await stack.enter_async_context(stdio_client(params))
        elif config.type == "sse":
            read, write = await stack.enter_async_context(
                sse_client(config.url, headers=config.headers or None)
            )
        else:
            read, write, _ = await stack.enter_async_context(
                streamablehttp_client(config.url, headers=config.headers or None)
            )
        session = await stack.enter_async_context(ClientSession(read, write))
        await session.initialize()
        return session

    async def _list_tools(self) -> list[Any]:
        async with AsyncExitStack() as stack:
            session = await self._open(stack)
            result = await session.list_tools()
            return list(result.tools)

    async def _call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        async with AsyncExitStack() as stack:
            session = await self._open(stack)
            return await session.call_tool(name, arguments)

    def list_tools(self) -> list[Any]:
        """Fetch the server's tool definitions."""
        logger.debug(f"listing tools of MCP server {self.config.name}")
        return asyncio.run(self._list_tools())

    def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """Call a tool and return its text content.

        Raises:
            ToolExecutionError: If the server reports the call as failed.
        """
        logger.debug(f"calling {name} on MCP server {self.config.name}")
        result = asyncio.run(self._call_tool(name, arguments))
        text = "\n".join(
            item.text for item in (result.content or []) if getattr(item, "text", None)
        )
        if getattr(result, "isError", False):
            raise ToolExecutionError(name, text or "MCP server reported an error")
        return text


def _call_remote(connection: McpServerConnection, remote_name: str, **kwargs: Any) -> str:
    arguments = {key: value for key, value in kwargs.items() if key != PLACEHOLDER_PARAMETER}
    return connection.call_tool(remote_name, arguments)


def build_mcp_tools(connection: McpServerConnection) -> list[Tool]:
    """Turn the tools of an MCP server into :class:`Tool` objects.

    Raises:
        ToolDefinitionError: If a tool's input schema is malformed.
    """
    tools = []
    for definition in connection.list_tools():
        remote_name = definition.name
        builder = ParameterBuilder().from_json_schema(getattr(definition, "inputSchema", None))
        tools.append(builder.build_tool(
            name=remote_name,
            description=definition.description or remote_name,
            handler=functools.partial(_call_remote, connection, remote_name),
            group=connection.config.group,
        ))
    return tools


class McpTools:
    """Tool group of one MCP server.

    The tool list is fetched on first use and kept for the lifetime of the
    instance, which the loader shares between all agents of the server.
    """

    def __init__(self, connection: McpServerConnection):
        self.connection = connection
        self._tools: list[Tool] | None = None

    @property
    def server_name(self) -> str:
        return self.connection.config.name

    def tool_classes(self) -> list[Tool]:
        if self._tools is None:
            self._tools = build_mcp_tools(self.connection)
            logger.info(f"loaded {len(self._tools)} tools from MCP server {self.server_name}")
        return list(self._tools)
