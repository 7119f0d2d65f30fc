"""Stream handling for LLM responses.

This module provides the StreamHandler class which processes streaming
responses from LLM clients, forwards text chunks to a callback as they
arrive and reconstructs the complete assistant message.
"""

import json
from typing import Callable, Iterator

from .logging import get_logger
from .types import (
    MessageRole,
    PartialToolCall,
    StreamChunk,
    ToolCall,
    UnifiedMessage,
    UsageStats,
)

logger = get_logger(__name__)

ChunkCallback = Callable[[str], None]


class StreamHandler:
    """Handles streaming responses from LLM clients.

    Processes StreamChunk objects and reconstructs them into a UnifiedMessage,
    handling:
    - Text content accumulation and forwarding, in arrival order
    - Tool call delta reconstruction
    - Token usage reported by the stream
    """

    def __init__(self, on_chunk: ChunkCallback | None = None):
        """Initialize the stream handler.

        Args:
            on_chunk: Called synchronously with every text delta.
        """
        self.on_chunk = on_chunk
        self.usage: UsageStats | None = None
        self.delivered = False

    def process_stream(self, stream: Iterator[StreamChunk]) -> UnifiedMessage:
        """Process a stream and return the reconstructed message.

        Args:
            stream: Iterator of StreamChunk objects from the LLM client.

        Returns:
            The reconstructed UnifiedMessage with content and tool calls.
        """
        content = ""
        tool_call_builders: dict[int, dict] = {}
        self.usage = None
        self.delivered = False

        for chunk in stream:
            if chunk.delta_content:
                content += chunk.delta_content
                if self.on_chunk is not None:
                    self.on_chunk(chunk.delta_content)
                    self.delivered = True

            if chunk.delta_tool_call:
                self._process_tool_call_chunk(chunk.delta_tool_call, tool_call_builders)

            if chunk.usage:
                self.usage = chunk.usage if self.usage is None else self.usage + chunk.usage

        tool_calls = self._build_tool_calls(tool_call_builders)

        return UnifiedMessage(
            role=MessageRole.ASSISTANT,
            content=content if content else None,
            tool_calls=tool_calls if tool_calls else None,
        )

    def _process_tool_call_chunk(
        self,
        delta: PartialToolCall,
        builders: dict[int, dict],
    ) -> None:
        builder = builders.setdefault(
            delta.index,
            {"id": delta.id, "name": delta.name, "arguments": ""},
        )
        if delta.id and not builder["id"]:
            builder["id"] = delta.id
        if delta.name and not builder["name"]:
            builder["name"] = delta.name
        if delta.arguments_delta:
            builder["arguments"] += delta.arguments_delta

    def _build_tool_calls(self, builders: dict[int, dict]) -> list[ToolCall]:
        """Build final ToolCall objects from accumulated builders.

        Calls without a name, or whose arguments never formed valid JSON,
        are dropped with a warning.
        """
        tool_calls = []
        for index in sorted(builders):
            builder = builders[index]
            if not builder["name"]:
                continue
            try:
                args = json.loads(builder["arguments"]) if builder["arguments"] else {}
            except json.JSONDecodeError:
                logger.warning(
                    f"dropping streamed tool call '{builder['name']}': "
                    f"invalid arguments {builder['arguments']!r}"
                )
                continue
            tool_calls.append(ToolCall(
                id=builder["id"] or f"call_{index}",
                name=builder["name"],
                arguments=args,
            ))
        return tool_calls
