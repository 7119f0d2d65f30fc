"""Anthropic client implementation.

This client handles communication with the Anthropic API (Claude models)
and normalizes responses to the unified format.

Anthropic has unique requirements:
- System prompt is passed separately, not in messages
- Tool calls use content blocks with type "tool_use"
- Tool results go in user messages with type "tool_result"
- Consecutive messages of the same role must be merged
"""

import os
from typing import Any, Iterator

from anthropic import Anthropic, APIConnectionError, InternalServerError
from anthropic import AuthenticationError as AnthropicAuthError
from anthropic import RateLimitError as AnthropicRateLimitError

from ..exceptions import (
    AuthenticationError,
    InvalidResponseError,
    ProviderUnavailableError,
    RateLimitError,
)
from ..tools.base import Tool
from ..types import (
    FinishReason,
    MessageRole,
    PartialToolCall,
    StreamChunk,
    ToolCall,
    UnifiedMessage,
    UnifiedResponse,
    UsageStats,
)
from .base import BaseLLMClient

# supported configuration keys for anthropic
SUPPORTED_CONFIG_KEYS = {
    "temperature",
    "top_p",
    "top_k",
    "max_tokens",
    "stop_sequences",
}

DEFAULT_MAX_TOKENS = 4096

_FINISH_MAP = {
    "end_turn": FinishReason.STOP,
    "stop_sequence": FinishReason.STOP,
    "tool_use": FinishReason.TOOL_USE,
    "max_tokens": FinishReason.LENGTH,
}


class AnthropicClient(BaseLLMClient):
    """Anthropic API client with unified response handling."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-sonnet-4-5",
        client_config: dict | None = None,
    ):
        """Initialize the Anthropic client.

        Args:
            api_key: Anthropic API key. Defaults to ANTHROPIC_API_KEY env var.
            model: Model to use.
            client_config: Optional configuration parameters:
                - temperature: float (0.0-1.0, default 1.0)
                - top_p: float (nucleus sampling)
                - top_k: int (top-k sampling)
                - max_tokens: int (default 4096)
                - stop_sequences: list[str]
        """
        super().__init__(client_config)
        unsupported = set(self.client_config) - SUPPORTED_CONFIG_KEYS
        if unsupported:
            raise ValueError(f"Unsupported config keys for Anthropic: {unsupported}")
        self.client = Anthropic(api_key=api_key or os.environ.get("ANTHROPIC_API_KEY"))
        self.model = model

    @property
    def model_name(self) -> str:
        return self.model

    def generate(
        self,
        messages: list[UnifiedMessage],
        tools: list[Tool] | None = None,
        stream: bool = False,
    ) -> UnifiedResponse | Iterator[StreamChunk]:
        """Generate a response from Anthropic.

        Raises:
            AuthenticationError: If API key is invalid
            RateLimitError: If rate limit is exceeded
            ProviderUnavailableError: If API is unavailable
        """
        system_prompt, converted_messages = self._convert_messages(messages)
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": converted_messages,
            "max_tokens": self.client_config.get("max_tokens", DEFAULT_MAX_TOKENS),
        }
        if system_prompt:
            kwargs["system"] = system_prompt
        if tools:
            kwargs["tools"] = self._convert_tools(tools)
        for key in ("temperature", "top_p", "top_k", "stop_sequences"):
            if key in self.client_config:
                kwargs[key] = self.client_config[key]

        try:
            if stream:
                return self._stream_response(self.client.messages.stream(**kwargs))
            return self._parse_response(self.client.messages.create(**kwargs))
        except AnthropicAuthError as e:
            raise AuthenticationError(f"Anthropic authentication failed: {e}") from e
        except AnthropicRateLimitError as e:
            raise RateLimitError("Anthropic rate limit exceeded") from e
        except (APIConnectionError, InternalServerError) as e:
            raise ProviderUnavailableError(f"Anthropic API unavailable: {e}") from e

    def _convert_messages(
        self, messages: list[UnifiedMessage]
    ) -> tuple[str | None, list[dict[str, Any]]]:
        """Convert unified messages to Anthropic format.

        System messages are joined into the system prompt; this includes the
        goal notices a chat room appends mid-conversation.
        """
        system_parts: list[str] = []
        converted: list[dict[str, Any]] = []

        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                if msg.content:
                    system_parts.append(msg.content)
                continue

            if msg.role == MessageRole.USER:
                entry = {"role": "user", "content": [{"type": "text", "text": msg.content or ""}]}
            elif msg.role == MessageRole.ASSISTANT:
                content: list[dict[str, Any]] = []
                if msg.content:
                    content.append({"type": "text", "text": msg.content})
                for tc in msg.tool_calls or []:
                    content.append({
                        "type": "tool_use",
                        "id": tc.id,
                        "name": tc.name,
                        "input": tc.arguments,
                    })
                entry = {"role": "assistant", "content": content}
            else:
                entry = {
                    "role": "user",
                    "content": [{
                        "type": "tool_result",
                        "tool_use_id": msg.tool_call_id,
                        "content": msg.content or "",
                    }],
                }

            if converted and converted[-1]["role"] == entry["role"]:
                converted[-1]["content"].extend(entry["content"])
            else:
                converted.append(entry)

        return ("\n\n".join(system_parts) or None), converted

    def _convert_tools(self, tools: list[Tool]) -> list[dict[str, Any]]:
        """Convert tools to Anthropic format with input_schema."""
        return [
            {
                "name": tool.qualified_name,
                "description": tool.description,
                "input_schema": self.tool_parameters(tool),
            }
            for tool in tools
        ]

    def _parse_response(self, response: Any) -> UnifiedResponse:
        """Parse Anthropic response into unified format."""
        try:
            tool_calls = []
            text_content = ""

            for block in response.content:
                if block.type == "text":
                    text_content += block.text
                elif block.type == "tool_use":
                    tool_calls.append(ToolCall(
                        id=block.id,
                        name=block.name,
                        arguments=block.input,
                    ))

            return UnifiedResponse(
                message=UnifiedMessage(
                    role=MessageRole.ASSISTANT,
                    content=text_content if text_content else None,
                    tool_calls=tool_calls if tool_calls else None,
                ),
                finish_reason=_FINISH_MAP.get(response.stop_reason, FinishReason.STOP),
                usage=UsageStats(
                    prompt_tokens=response.usage.input_tokens,
                    completion_tokens=response.usage.output_tokens,
                    total_tokens=response.usage.input_tokens + response.usage.output_tokens,
                ),
            )
        except Exception as e:
            raise InvalidResponseError(f"Failed to parse Anthropic response: {e}") from e

    def _parse_stream_chunk(self, chunk: Any) -> StreamChunk:
        """Parse a single streaming event from Anthropic."""
        event_type = getattr(chunk, "type", None)

        if event_type == "content_block_delta":
            delta = chunk.delta
            delta_type = getattr(delta, "type", None)
            if delta_type == "text_delta":
                return StreamChunk(delta_content=delta.text)
            if delta_type == "input_json_delta":
                return StreamChunk(
                    delta_tool_call=PartialToolCall(
                        index=chunk.index,
                        arguments_delta=delta.partial_json,
                    )
                )

        elif event_type == "content_block_start":
            block = chunk.content_block
            if getattr(block, "type", None) == "tool_use":
                return StreamChunk(
                    delta_tool_call=PartialToolCall(
                        index=chunk.index,
                        id=block.id,
                        name=block.name,
                    )
                )

        elif event_type == "message_delta":
            stop_reason = getattr(chunk.delta, "stop_reason", None)
            usage = getattr(chunk, "usage", None)
            output_tokens = getattr(usage, "output_tokens", None) or 0
            return StreamChunk(
                finish_reason=_FINISH_MAP.get(stop_reason) if stop_reason else None,
                usage=UsageStats(0, output_tokens, output_tokens) if output_tokens else None,
            )

        return StreamChunk()

    def _stream_response(self, response: Any) -> Iterator[StreamChunk]:
        with response as stream:
            for event in stream:
                chunk = self._parse_stream_chunk(event)
                if (chunk.delta_content or chunk.delta_tool_call or
                        chunk.finish_reason or chunk.usage):
                    yield chunk
