"""Shared test fixtures and configuration."""

import pytest
from unittest.mock import MagicMock

from ai_helper.agents.base import BaseAgent
from ai_helper.chat import ChatProvider
from ai_helper.clients.base import BaseLLMClient
from ai_helper.config import Settings
from ai_helper.registry import AgentRegistry, get_registry
from ai_helper.tools.base import BaseTools, define_function, prop
from ai_helper.types import (
    FinishReason,
    MessageRole,
    ToolCall,
    UnifiedMessage,
    UnifiedResponse,
    UsageStats,
)


def text_response(content: str, usage: UsageStats | None = None) -> UnifiedResponse:
    """A final answer turn."""
    return UnifiedResponse(
        message=UnifiedMessage(role=MessageRole.ASSISTANT, content=content),
        finish_reason=FinishReason.STOP,
        usage=usage,
    )


def tool_call_response(*calls: ToolCall, usage: UsageStats | None = None) -> UnifiedResponse:
    """A turn in which the model only requests tools."""
    return UnifiedResponse(
        message=UnifiedMessage(role=MessageRole.ASSISTANT, content=None, tool_calls=list(calls)),
        finish_reason=FinishReason.TOOL_USE,
        usage=usage,
    )


class ScriptedClient:
    """LLM client that replays a list of responses and records every call.

    Strings in the script become text answers; exceptions are raised.
    """

    def __init__(self, responses=(), model: str = "fake-model"):
        self.responses = list(responses)
        self.calls: list[dict] = []
        self._model = model

    @property
    def model_name(self) -> str:
        return self._model

    def generate(self, messages, tools=None, stream=False):
        self.calls.append({"messages": list(messages), "tools": tools, "stream": stream})
        if not self.responses:
            raise AssertionError("ScriptedClient ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return text_response(response)
        return response

    def contents(self, call_index: int) -> list[str | None]:
        """Message contents sent in one call."""
        return [m.content for m in self.calls[call_index]["messages"]]


class ProjectAgent(BaseAgent):
    def backstory(self) -> str:
        return "Finds projects by name."


class IssueAgent(BaseAgent):
    def backstory(self) -> str:
        return "Finds issues of a project."


class ExplodingTools(BaseTools):
    @define_function(
        "Look up issues; always fails.",
        prop("project_id", "integer", "Project id", required=True),
    )
    def lookup(self, project_id: int) -> str:
        raise RuntimeError("database unavailable")


class BrokenIssueAgent(BaseAgent):
    def role(self) -> str:
        return "issue_agent"

    def backstory(self) -> str:
        return "Finds issues, unreliably."

    def available_tool_providers(self):
        return [ExplodingTools]


@pytest.fixture
def settings():
    """Settings independent of the environment and .env files."""
    return Settings(
        _env_file=None,
        llm_provider="openai",
        openai_api_key="sk-test",
        language="English",
    )


@pytest.fixture
def mock_client():
    """Create a mock LLM client."""
    client = MagicMock(spec=BaseLLMClient)
    client.model_name = "mock-model"
    return client


@pytest.fixture
def scripted_client():
    return ScriptedClient()


@pytest.fixture
def provider(settings, scripted_client):
    """Chat provider whose sessions all share the scripted client."""
    return ChatProvider(settings, client=scripted_client)


@pytest.fixture
def registry():
    """Registry with the leader and two fake agents."""
    registry = AgentRegistry()
    registry.register("leader_agent", "ai_helper.agents.leader.LeaderAgent")
    registry.register("project_agent", ProjectAgent)
    registry.register("issue_agent", IssueAgent)
    return registry


@pytest.fixture
def global_registry():
    """The process-wide registry, restored after the test."""
    registry = get_registry()
    snapshot = registry.snapshot()
    yield registry
    registry.restore(snapshot)


@pytest.fixture
def sample_tool_call():
    """Create a sample tool call."""
    return ToolCall(
        id="call_123",
        name="calculator_tools__add",
        arguments={"a": 1, "b": 2},
    )
