"""Base class for OpenAI-compatible API clients.

This class provides shared implementation for providers that use the
OpenAI chat-completions format (OpenAI, Azure OpenAI, local servers such
as vLLM or Ollama).
"""

import json
from abc import abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator

from ..exceptions import InvalidResponseError
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

# generation parameters accepted by the chat-completions endpoint
SUPPORTED_CONFIG_KEYS = {
    "temperature",
    "top_p",
    "max_tokens",
    "stop",
    "presence_penalty",
    "frequency_penalty",
    "seed",
}


class OpenAICompatibleClient(BaseLLMClient):
    """Base class for clients using OpenAI-compatible API format.

    Subclasses must implement:
    - _create_client(): initialize the provider SDK client
    - _handle_api_errors(): context manager for exception mapping
    """

    provider_label = "OpenAI-compatible"

    def __init__(
        self,
        api_key: str | None,
        model: str,
        client_config: dict | None = None,
        **client_kwargs: Any,
    ):
        """Initialize the client.

        Args:
            api_key: API key for the provider
            model: Model name to use
            client_config: Optional configuration parameters
            **client_kwargs: Extra arguments for the SDK client (base_url, endpoint...)
        """
        super().__init__(client_config)
        self.model = model
        self.client = self._create_client(api_key, **client_kwargs)

    @property
    def model_name(self) -> str:
        return self.model

    @abstractmethod
    def _create_client(self, api_key: str | None, **client_kwargs: Any) -> Any:
        """Create the provider's SDK client instance."""

    @abstractmethod
    @contextmanager
    def _handle_api_errors(self):
        """Context manager for handling provider-specific errors.

        Should catch provider exceptions and re-raise as our exceptions:
        - AuthenticationError
        - RateLimitError
        - ProviderUnavailableError
        """

    def _get_supported_config_keys(self) -> set[str]:
        return SUPPORTED_CONFIG_KEYS

    # ==================== shared implementations ====================

    def generate(
        self,
        messages: list[UnifiedMessage],
        tools: list[Tool] | None = None,
        stream: bool = False,
    ) -> UnifiedResponse | Iterator[StreamChunk]:
        """Generate a response from the provider.

        Raises:
            AuthenticationError: If API key is invalid
            RateLimitError: If rate limit is exceeded
            ProviderUnavailableError: If API is unavailable
        """
        api_args: dict[str, Any] = {
            "model": self.model,
            "messages": self._convert_messages(messages),
            "stream": stream,
        }
        if tools:
            api_args["tools"] = self._convert_tools(tools)
            api_args["tool_choice"] = "auto"
        if stream:
            api_args["stream_options"] = {"include_usage": True}

        supported_keys = self._get_supported_config_keys()
        for key, value in self.client_config.items():
            if key in supported_keys:
                api_args[key] = value

        with self._handle_api_errors():
            response = self.client.chat.completions.create(**api_args)
            if stream:
                return self._stream_response(response)
            return self._parse_response(response)

    def _convert_messages(self, messages: list[UnifiedMessage]) -> list[dict[str, Any]]:
        """Convert unified messages to OpenAI-compatible format."""
        return [self._convert_message(msg) for msg in messages]

    def _convert_message(self, message: UnifiedMessage) -> dict[str, Any]:
        if message.role == MessageRole.ASSISTANT:
            return self._convert_assistant_message(message)
        if message.role == MessageRole.TOOL:
            return {
                "role": "tool",
                "tool_call_id": message.tool_call_id,
                "content": message.content or "",
            }
        return {"role": message.role.value, "content": message.content or ""}

    def _convert_assistant_message(self, message: UnifiedMessage) -> dict[str, Any]:
        entry: dict[str, Any] = {"role": "assistant", "content": message.content}
        if message.tool_calls:
            entry["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {
                        "name": tc.name,
                        "arguments": json.dumps(tc.arguments),
                    },
                }
                for tc in message.tool_calls
            ]
        return entry

    def _map_finish_reason(self, reason: str | None) -> FinishReason:
        if not reason:
            return FinishReason.STOP
        mapping = {
            "stop": FinishReason.STOP,
            "tool_calls": FinishReason.TOOL_USE,
            "function_call": FinishReason.TOOL_USE,
            "length": FinishReason.LENGTH,
        }
        return mapping.get(reason, FinishReason.STOP)

    def _convert_tools(self, tools: list[Tool]) -> list[dict[str, Any]]:
        """Convert tools to OpenAI-compatible function format."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.qualified_name,
                    "description": tool.description,
                    "parameters": self.tool_parameters(tool),
                },
            }
            for tool in tools
        ]

    def _parse_response(self, response: Any) -> UnifiedResponse:
        """Parse OpenAI-compatible response into unified format."""
        try:
            choice = response.choices[0]
            message = choice.message

            tool_calls = None
            if message.tool_calls:
                tool_calls = [
                    ToolCall(
                        id=tc.id,
                        name=tc.function.name,
                        arguments=json.loads(tc.function.arguments or "{}"),
                    )
                    for tc in message.tool_calls
                ]

            return UnifiedResponse(
                message=UnifiedMessage(
                    role=MessageRole.ASSISTANT,
                    content=message.content,
                    tool_calls=tool_calls,
                ),
                finish_reason=self._map_finish_reason(choice.finish_reason),
                usage=self._parse_usage(response.usage),
            )
        except Exception as e:
            raise InvalidResponseError(
                f"Failed to parse {self.provider_label} response: {e}"
            ) from e

    def _parse_usage(self, usage: Any) -> UsageStats | None:
        if not usage:
            return None
        return UsageStats(
            prompt_tokens=usage.prompt_tokens or 0,
            completion_tokens=usage.completion_tokens or 0,
            total_tokens=usage.total_tokens or 0,
        )

    def _stream_response(self, response: Any) -> Iterator[StreamChunk]:
        with self._handle_api_errors():
            for chunk in response:
                yield self._parse_stream_chunk(chunk)

    def _parse_stream_chunk(self, chunk: Any) -> StreamChunk:
        """Parse a single streaming chunk.

        The final chunk of a stream opened with ``include_usage`` has no
        choices and only carries the token usage.
        """
        usage = self._parse_usage(getattr(chunk, "usage", None))
        choice = chunk.choices[0] if chunk.choices else None
        if not choice:
            return StreamChunk(usage=usage)

        delta = choice.delta
        finish_reason = None
        if choice.finish_reason:
            finish_reason = self._map_finish_reason(choice.finish_reason)

        delta_tool_call = None
        if getattr(delta, "tool_calls", None):
            delta_tool_call = self._parse_tool_call_from_delta(delta.tool_calls[0])

        return StreamChunk(
            delta_content=getattr(delta, "content", None),
            delta_tool_call=delta_tool_call,
            finish_reason=finish_reason,
            usage=usage,
        )

    def _parse_tool_call_from_delta(self, tc: Any) -> PartialToolCall:
        return PartialToolCall(
            index=tc.index,
            id=tc.id if tc.id else None,
            name=tc.function.name if tc.function and tc.function.name else None,
            arguments_delta=tc.function.arguments if tc.function and tc.function.arguments else None,
        )
