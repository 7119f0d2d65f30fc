"""Google Gemini client implementation using the google-genai SDK.

Google Gemini has unique requirements:
- Uses "parts" format for message content
- Tool calls use "function_call" in parts
- Tool results use "function_response" in parts
- System instruction is a separate parameter
- Role names: "user" and "model" (not "assistant")
"""

import json
import os
from typing import Any, Iterator

from google import genai
from google.genai import types
from google.genai.errors import APIError, ClientError, ServerError

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

# supported configuration keys for google
SUPPORTED_CONFIG_KEYS = {
    "temperature",
    "top_p",
    "top_k",
    "max_tokens",
    "stop_sequences",
}


class GoogleClient(BaseLLMClient):
    """Google Gemini API client."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gemini-2.0-flash",
        client_config: dict | None = None,
    ):
        """Initialize the Google client.

        Args:
            api_key: Google API key. Defaults to GOOGLE_API_KEY or GEMINI_API_KEY env var.
            model: Model to use. Defaults to gemini-2.0-flash.
            client_config: Optional configuration parameters (temperature,
                top_p, top_k, max_tokens, stop_sequences).
        """
        super().__init__(client_config)

        unsupported = set(self.client_config) - SUPPORTED_CONFIG_KEYS
        if unsupported:
            raise ValueError(f"Unsupported config keys for Google: {unsupported}")

        resolved_key = api_key or os.environ.get("GOOGLE_API_KEY") or os.environ.get("GEMINI_API_KEY")
        if not resolved_key:
            raise ValueError("Google API key not found. Set GOOGLE_API_KEY or GEMINI_API_KEY env var.")

        self.client = genai.Client(api_key=resolved_key)
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
        """Generate a response from Google Gemini."""
        system_instruction, converted_messages = self._convert_messages(messages)
        converted_tools = self._convert_tools(tools) if tools else None
        config = self._build_generation_config(converted_tools, system_instruction)

        try:
            if stream:
                response = self.client.models.generate_content_stream(
                    model=self.model,
                    contents=converted_messages,
                    config=config,
                )
                return self._stream_response(response)

            response = self.client.models.generate_content(
                model=self.model,
                contents=converted_messages,
                config=config,
            )
            return self._parse_response(response)

        except ClientError as e:
            error_msg = str(e).lower()
            if getattr(e, "code", None) == 429 or "quota" in error_msg:
                raise RateLimitError("Google rate limit exceeded") from e
            if "unauthorized" in error_msg or "authentication" in error_msg or "api key" in error_msg:
                raise AuthenticationError(f"Google authentication failed: {e}") from e
            raise InvalidResponseError(f"Invalid request to Google API: {e}") from e
        except ServerError as e:
            raise ProviderUnavailableError(f"Google API unavailable: {e}") from e
        except APIError as e:
            raise InvalidResponseError(f"Google API error: {e}") from e

    def _build_generation_config(
        self,
        tools: list[types.FunctionDeclaration] | None,
        system_instruction: str | None = None,
    ) -> types.GenerateContentConfig:
        cfg = self.client_config

        config_kwargs: dict[str, Any] = {
            "max_output_tokens": cfg.get("max_tokens", 4096),
        }
        if system_instruction:
            config_kwargs["system_instruction"] = system_instruction
        for key in ("temperature", "top_p", "top_k", "stop_sequences"):
            if key in cfg:
                config_kwargs[key] = cfg[key]

        if tools:
            config_kwargs["tools"] = [types.Tool(function_declarations=tools)]
            config_kwargs["tool_config"] = types.ToolConfig(
                function_calling_config=types.FunctionCallingConfig(mode="AUTO")
            )
            # tool calls are executed by the chat session, not the SDK
            config_kwargs["automatic_function_calling"] = types.AutomaticFunctionCallingConfig(
                disable=True
            )

        return types.GenerateContentConfig(**config_kwargs)

    def _convert_messages(
        self, messages: list[UnifiedMessage]
    ) -> tuple[str | None, list[types.Content]]:
        """Convert unified messages to Gemini format."""
        system_parts: list[str] = []
        converted: list[types.Content] = []

        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                if msg.content:
                    system_parts.append(msg.content)

            elif msg.role == MessageRole.USER:
                converted.append(types.Content(
                    role="user",
                    parts=[types.Part.from_text(text=msg.content or "")],
                ))

            elif msg.role == MessageRole.ASSISTANT:
                parts: list[types.Part] = []
                if msg.content:
                    parts.append(types.Part.from_text(text=msg.content))
                for tc in msg.tool_calls or []:
                    parts.append(types.Part.from_function_call(
                        name=tc.name,
                        args=tc.arguments,
                    ))
                converted.append(types.Content(role="model", parts=parts))

            elif msg.role == MessageRole.TOOL:
                converted.append(types.Content(
                    role="user",
                    parts=[types.Part.from_function_response(
                        name=msg.name or "",
                        response={"result": msg.content},
                    )],
                ))

        return ("\n\n".join(system_parts) or None), converted

    def _convert_tools(self, tools: list[Tool]) -> list[types.FunctionDeclaration]:
        """Convert tools to Gemini function declaration format."""
        declarations = []
        for tool in tools:
            kwargs: dict[str, Any] = {
                "name": tool.qualified_name,
                "description": tool.description,
            }
            # gemini rejects an object schema without properties
            if tool.parameters and tool.parameters.get("properties"):
                kwargs["parameters"] = tool.parameters
            declarations.append(types.FunctionDeclaration(**kwargs))
        return declarations

    def _parse_usage(self, response: Any) -> UsageStats | None:
        um = getattr(response, "usage_metadata", None)
        if not um:
            return None
        return UsageStats(
            prompt_tokens=getattr(um, "prompt_token_count", 0) or 0,
            completion_tokens=getattr(um, "candidates_token_count", 0) or 0,
            total_tokens=getattr(um, "total_token_count", 0) or 0,
        )

    def _parse_response(self, response: Any) -> UnifiedResponse:
        """Parse Gemini response into unified format."""
        try:
            candidate = response.candidates[0]

            tool_calls = []
            text_content = ""
            for part in candidate.content.parts or []:
                if getattr(part, "text", None):
                    text_content += part.text
                elif getattr(part, "function_call", None):
                    fc = part.function_call
                    tool_calls.append(ToolCall(
                        id=fc.id or f"call_{fc.name}_{len(tool_calls)}",
                        name=fc.name,
                        arguments=dict(fc.args) if fc.args else {},
                    ))

            finish_reason = FinishReason.STOP
            if str(candidate.finish_reason).endswith("MAX_TOKENS"):
                finish_reason = FinishReason.LENGTH
            if tool_calls:
                finish_reason = FinishReason.TOOL_USE

            return UnifiedResponse(
                message=UnifiedMessage(
                    role=MessageRole.ASSISTANT,
                    content=text_content if text_content else None,
                    tool_calls=tool_calls if tool_calls else None,
                ),
                finish_reason=finish_reason,
                usage=self._parse_usage(response),
            )
        except Exception as e:
            raise InvalidResponseError(f"Failed to parse Google response: {e}") from e

    def _parse_stream_chunk(self, chunk: Any, index: int = 0) -> StreamChunk:
        """Parse a single streaming chunk from Gemini.

        Gemini sends function calls whole, so each one arrives as a complete
        partial tool call with its JSON-encoded arguments. ``index`` numbers
        the calls within one stream.
        """
        usage = self._parse_usage(chunk)
        if not chunk.candidates:
            return StreamChunk(usage=usage)

        candidate = chunk.candidates[0]
        content = getattr(candidate, "content", None)
        text = ""
        tool_call = None
        for part in (content.parts if content and content.parts else []):
            if getattr(part, "text", None):
                text += part.text
            elif getattr(part, "function_call", None) and tool_call is None:
                fc = part.function_call
                tool_call = PartialToolCall(
                    index=index,
                    id=fc.id or f"call_{fc.name}_{index}",
                    name=fc.name,
                    arguments_delta=json.dumps(dict(fc.args) if fc.args else {}),
                )

        finish_reason = None
        if tool_call is not None:
            finish_reason = FinishReason.TOOL_USE
        elif candidate.finish_reason:
            finish_reason = FinishReason.STOP

        return StreamChunk(
            delta_content=text or None,
            delta_tool_call=tool_call,
            finish_reason=finish_reason,
            usage=usage,
        )

    def _stream_response(self, response: Any) -> Iterator[StreamChunk]:
        calls = 0
        for chunk in response:
            parsed = self._parse_stream_chunk(chunk, calls)
            if parsed.delta_tool_call is not None:
                calls += 1
            if (parsed.delta_content or parsed.delta_tool_call or
                    parsed.finish_reason or parsed.usage):
                yield parsed
