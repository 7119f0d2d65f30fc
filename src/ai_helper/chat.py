"""Chat primitive the agents are built on.

A :class:`ChatProvider` turns settings into configured chat sessions. A
:class:`ChatSession` holds one conversation and runs the tool loop:

1. Send the history to the model
2. If the model requests tool calls, execute them
3. Add tool results to history
4. Repeat until the model produces a text answer
"""

from dataclasses import dataclass
from typing import Callable, Iterator

from .clients.base import BaseLLMClient, with_retry
from .config import Settings, get_settings
from .core import MemoryManager, ToolExecutor
from .exceptions import (
    AiHelperError,
    ProviderUnavailableError,
    RateLimitError,
    StreamInterruptedError,
)
from .logging import get_logger
from .stream_handler import ChunkCallback, StreamHandler
from .tools.base import Tool
from .types import (
    MessageRole,
    StreamChunk,
    UnifiedMessage,
    UnifiedResponse,
    UsageStats,
)

logger = get_logger(__name__)


@dataclass
class ChatResponse:
    """Final text of one model turn.

    Attributes:
        content: Answer text, empty when the model only called tools
        usage: Token usage of the turn, when the provider reports it
        model: Model that produced the turn
    """
    content: str
    usage: UsageStats | None = None
    model: str | None = None


EndMessageCallback = Callable[[ChatResponse], None]


class ChatSession:
    """One conversation with the model, optionally equipped with tools.

    Tool exceptions propagate out of :meth:`ask`; unknown tools and invalid
    arguments are reported back to the model instead.
    """

    def __init__(
        self,
        client: BaseLLMClient,
        instructions: str | None = None,
        tools: list[Tool] | None = None,
        max_tool_rounds: int = 10,
    ):
        self.client = client
        self.instructions = instructions
        self.tools = list(tools or [])
        self.max_tool_rounds = max_tool_rounds
        self.memory = MemoryManager(instructions)
        self.tool_executor = ToolExecutor(self.tools)
        self._end_message_callbacks: list[EndMessageCallback] = []

    @property
    def model(self) -> str:
        return self.client.model_name

    @property
    def messages(self) -> list[UnifiedMessage]:
        return list(self.memory.history)

    def add_message(self, role: MessageRole | str, content: str) -> None:
        """Append a message to the history without calling the model."""
        message_role = role if isinstance(role, MessageRole) else MessageRole(str(role).lower())
        self.memory.add_message(UnifiedMessage(role=message_role, content=content))

    def reset(self) -> None:
        """Drop the conversation, keeping the instructions."""
        self.memory.clear(keep_system=True)

    def on_end_message(self, callback: EndMessageCallback) -> None:
        """Register a callback invoked after every completed model turn."""
        self._end_message_callbacks.append(callback)

    def ask(self, content: str | None = None, on_chunk: ChunkCallback | None = None) -> ChatResponse:
        """Ask the model and run tool calls until it answers in text.

        Args:
            content: User message to add first. None asks on the history as
                it stands, e.g. after :meth:`add_message`.
            on_chunk: Streams the answer text to this callback when given.

        Returns:
            The last turn's answer with the usage summed over all turns.

        Raises:
            ToolExecutionError: If a tool raised.
            AiHelperError: If the model keeps calling tools past
                ``max_tool_rounds``.
        """
        if content is not None:
            self.add_message(MessageRole.USER, content)

        total_usage: UsageStats | None = None
        for _ in range(self.max_tool_rounds):
            message, usage = self._generate(on_chunk)
            self.memory.add_message(message)
            if usage:
                total_usage = usage if total_usage is None else total_usage + usage

            turn = ChatResponse(content=message.content or "", usage=usage, model=self.model)
            for callback in self._end_message_callbacks:
                callback(turn)

            if not message.tool_calls:
                return ChatResponse(content=turn.content, usage=total_usage, model=self.model)

            self.tool_executor.execute_tool_calls(message.tool_calls, self.memory)

        raise AiHelperError(f"Model did not produce an answer within {self.max_tool_rounds} tool rounds")

    @with_retry()
    def _generate(self, on_chunk: ChunkCallback | None) -> tuple[UnifiedMessage, UsageStats | None]:
        response = self.client.generate(
            messages=self.memory.history,
            tools=self.tools or None,
            stream=on_chunk is not None,
        )
        if isinstance(response, UnifiedResponse):
            # providers without streaming support still honour the callback
            if on_chunk is not None and response.message.content:
                on_chunk(response.message.content)
            return response.message, response.usage

        handler = StreamHandler(on_chunk)
        try:
            message = handler.process_stream(_as_stream(response))
        except (RateLimitError, ProviderUnavailableError) as e:
            # a retry would resend the chunks already delivered
            if handler.delivered:
                raise StreamInterruptedError(f"Stream interrupted after partial output: {e}") from e
            raise
        return message, handler.usage


def _as_stream(response: object) -> Iterator[StreamChunk]:
    if not hasattr(response, "__iter__"):
        raise AiHelperError(f"Unexpected response type from client: {type(response).__name__}")
    return iter(response)  # type: ignore[call-overload]


class ChatProvider:
    """Creates chat sessions for the configured LLM provider.

    A client passed in explicitly is shared by all sessions; otherwise every
    session gets its own client so that per-session temperature overrides do
    not leak between agents.
    """

    def __init__(self, settings: Settings | None = None, client: BaseLLMClient | None = None):
        self.settings = settings or get_settings()
        self._client = client

    def configure(self) -> "ChatProvider":
        """Check that a provider is usable.

        Raises:
            ValueError: If no provider is configured.
        """
        if self._client is None and not self.settings.detect_provider():
            raise ValueError(
                "No LLM provider configured. Set LLM_PROVIDER or a provider API key."
            )
        return self

    @property
    def provider_name(self) -> str | None:
        return self.settings.detect_provider()

    @property
    def model_name(self) -> str | None:
        if self._client is not None:
            return self._client.model_name
        if self.settings.llm_model:
            return self.settings.llm_model
        provider = self.provider_name
        if not provider:
            return None
        from .clients.factory import get_default_model

        return get_default_model(provider)

    @property
    def temperature(self) -> float | None:
        return self.settings.llm_temperature

    def create_client(self, temperature: float | None = None) -> BaseLLMClient:
        if self._client is not None:
            return self._client

        from .clients.factory import create_client

        provider = self.configure().provider_name
        client_config = self.settings.client_config()
        if temperature is not None:
            client_config["temperature"] = temperature
        return create_client(
            provider,
            model=self.settings.llm_model,
            client_config=client_config,
            settings=self.settings,
        )

    def create_session(
        self,
        instructions: str | None = None,
        tools: list[Tool] | None = None,
        temperature: float | None = None,
    ) -> ChatSession:
        """Open a new session.

        Args:
            instructions: System prompt of the session
            tools: Tools the model may call
            temperature: Overrides the configured temperature
        """
        return ChatSession(
            client=self.create_client(temperature),
            instructions=instructions,
            tools=tools,
            max_tool_rounds=self.settings.max_tool_rounds,
        )
