"""Entry point for answering user requests."""

from typing import Any

from .agents.base import Messages, StreamCallback
from .chat import ChatProvider
from .config import Settings, get_settings
from .logging import get_logger
from .registry import LEADER_NAME, AgentRegistry, get_registry
from .tracing import LoggingTracer, Tracer

logger = get_logger(__name__)


class AiHelper:
    """Answers user requests with the leader agent.

    Each request gets a new leader and a new tracer; the provider and the
    registry are shared.

    Args:
        settings: Settings; defaults to the process-wide settings.
        provider: Chat provider; built from ``settings`` when omitted.
        registry: Agent catalog; defaults to the process-wide registry.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        provider: ChatProvider | None = None,
        registry: AgentRegistry | None = None,
    ):
        self.settings = settings or get_settings()
        self.provider = provider or ChatProvider(self.settings)
        self.registry = registry or get_registry()

    def create_tracer(self) -> Tracer:
        return LoggingTracer()

    def chat(
        self,
        messages: Messages,
        callback: StreamCallback | None = None,
        project: Any = None,
        options: dict | None = None,
    ) -> str:
        """Answer the latest user message of ``messages``.

        Never raises: an error is logged, sent to ``callback`` as the last
        chunk and returned as the answer.

        Args:
            messages: Conversation as ``{"role", "content"}`` dicts.
            callback: Receives progress notices and answer chunks.
            project: Domain context handed to every agent.
            options: Chat options such as ``temperature``.

        Returns:
            The answer, or the error message.
        """
        tracer = self.create_tracer()
        tracer.create_span(name="user_request", input=messages[-1]["content"] if messages else None)
        try:
            leader = self.registry.instantiate(
                LEADER_NAME,
                project=project,
                tracer=tracer,
                provider=self.provider,
                registry=self.registry,
            )
            answer = leader.perform_user_request(messages, options, callback)
        except Exception as e:
            logger.error(f"Request failed: {e}", exc_info=True)
            answer = str(e)
            if callback:
                try:
                    callback(answer)
                except Exception as callback_error:
                    logger.debug(f"callback failed while reporting an error: {callback_error}")
        tracer.finish_current_span(output=answer)
        return answer

    def list_agents(self) -> list[dict[str, str]]:
        """Catalog of the agents the leader may plan with."""
        return self.registry.list_enabled(exclude=(LEADER_NAME,))
