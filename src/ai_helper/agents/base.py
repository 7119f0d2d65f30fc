"""Base class for all agents.

An agent wraps one role: a system prompt built from its backstory and a set
of tools. It can answer directly through :meth:`BaseAgent.chat` or run a
tool-augmented task through :meth:`BaseAgent.perform_task`.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable

from ..chat import ChatProvider, ChatResponse, ChatSession
from ..config import Settings, get_settings
from ..logging import get_logger
from ..prompts import BASE_SYSTEM_PROMPT
from ..tool_response import TaskResponse
from ..tools.base import BaseTools, Tool
from ..tracing import NullTracer, Tracer, traced_span
from ..types import MessageRole
from ..utils.text import snake_case

logger = get_logger(__name__)

Messages = list[dict[str, str]]
StreamCallback = Callable[[str], None]


class BaseAgent(ABC):
    """Interface and shared behaviour of agents.

    Subclasses implement :meth:`backstory` and usually declare their tools by
    overriding :meth:`available_tool_providers`.

    Construction performs no I/O, so agents can be built just to read their
    backstory.

    Args:
        project: Domain context of the current request, passed through to tools.
        tracer: Tracing handle; defaults to a tracer that records nothing.
        provider: Chat provider; created from settings on first use.
        settings: Settings; defaults to the process-wide settings.
    """

    def __init__(
        self,
        project: Any = None,
        tracer: Tracer | None = None,
        provider: ChatProvider | None = None,
        settings: Settings | None = None,
    ):
        self.project = project
        self.tracer: Tracer = tracer or NullTracer()
        self._provider = provider
        self._settings = settings
        self._assistant: ChatSession | None = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = self._provider.settings if self._provider else get_settings()
        return self._settings

    @property
    def provider(self) -> ChatProvider:
        if self._provider is None:
            self._provider = ChatProvider(self.settings)
        return self._provider

    @abstractmethod
    def backstory(self) -> str:
        """Describe what the agent can do; shown to the planner."""

    def role(self) -> str:
        """Role name, derived from the class name (``FileAgent`` -> ``file_agent``)."""
        return snake_case(type(self).__name__)

    def enabled(self) -> bool:
        return True

    @property
    def temperature(self) -> float | None:
        return self.provider.temperature

    def system_prompt(self) -> str:
        return BASE_SYSTEM_PROMPT.format(
            role=self.role(),
            backstory=self.backstory(),
            time=datetime.now().astimezone().isoformat(timespec="seconds"),
            lang=self.settings.language,
        )

    def available_tool_providers(self) -> list[type[BaseTools]]:
        """Tool groups this agent may use."""
        return []

    def available_tool_classes(self) -> list[Tool]:
        """Tools this agent exposes to the model."""
        tools: list[Tool] = []
        for provider in self.available_tool_providers():
            tools.extend(provider.tool_classes())
        return tools

    def available_tools(self) -> list[dict]:
        """Tools in the flat function-calling format."""
        return [tool.to_schema() for tool in self.available_tool_classes()]

    @property
    def assistant(self) -> ChatSession:
        """Tool-equipped session used by :meth:`perform_task`, built once."""
        if self._assistant is None:
            self._assistant = self.provider.create_session(
                instructions=self.system_prompt(),
                tools=self.available_tool_classes(),
                temperature=self.temperature,
            )
            self._assistant.on_end_message(self._trace_generation("perform_task"))
        return self._assistant

    def add_message(self, role: MessageRole | str, content: str) -> None:
        """Queue a message on the assistant session."""
        self.assistant.add_message(role, content)

    def _trace_generation(self, name: str, input: Any = None) -> Callable[[ChatResponse], None]:
        def record(response: ChatResponse) -> None:
            self.tracer.record_generation(
                name=f"{self.role()}.{name}",
                model=response.model,
                input=input,
                output=response.content,
                usage=response.usage,
            )

        return record

    def chat(
        self,
        messages: Messages,
        options: dict | None = None,
        callback: StreamCallback | None = None,
    ) -> str:
        """Answer the last message, with the earlier ones as history.

        Every chunk of the answer is forwarded to ``callback`` when given.
        The session has no tools.

        Args:
            messages: ``{"role", "content"}`` dicts, oldest first.
            options: ``temperature`` overrides the agent's temperature.
            callback: Receives the answer text as it streams.

        Returns:
            The answer text.
        """
        if not messages:
            raise ValueError("chat() needs at least one message")
        options = options or {}
        session = self.provider.create_session(
            instructions=self.system_prompt(),
            temperature=options.get("temperature", self.temperature),
        )
        for message in messages[:-1]:
            session.add_message(message["role"], message["content"])
        last = messages[-1]
        session.on_end_message(self._trace_generation("chat", input=last["content"]))
        if last.get("role", "user") != MessageRole.USER.value:
            session.add_message(last["role"], last["content"])
            return session.ask(None, on_chunk=callback).content
        return session.ask(last["content"], on_chunk=callback).content

    def perform_task(
        self,
        options: dict | None = None,
        callback: StreamCallback | None = None,
    ) -> TaskResponse:
        """Run the assistant on the queued instruction.

        Exceptions are logged and returned as an error response so that one
        agent's failure does not abort the request.
        """
        last = self.assistant.memory.last_message(MessageRole.USER)
        task = last.content if last else None
        with traced_span(self.tracer, f"{self.role()}.perform_task", input=task) as span:
            response = self._run_task(callback)
            span.output = response.to_dict()
        return response

    def _run_task(self, callback: StreamCallback | None = None) -> TaskResponse:
        try:
            answer = self.assistant.ask(None, on_chunk=callback)
            return TaskResponse.create_success(answer.content)
        except Exception as e:
            logger.error(f"{self.role()} task failed: {e}", exc_info=True)
            return TaskResponse.create_error(str(e))
