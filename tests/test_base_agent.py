"""Tests for BaseAgent."""

import re

import pytest

from ai_helper.chat import ChatProvider
from ai_helper.tool_response import TaskResponse
from ai_helper.tracing import LoggingTracer, NullTracer
from ai_helper.types import MessageRole, ToolCall, UsageStats

from conftest import (
    BrokenIssueAgent,
    ExplodingTools,
    ProjectAgent,
    ScriptedClient,
    text_response,
    tool_call_response,
)


class TestDescription:
    def test_role_from_class_name(self):
        assert ProjectAgent().role() == "project_agent"

    def test_defaults(self):
        agent = ProjectAgent()
        assert isinstance(agent.tracer, NullTracer)
        assert agent.enabled() is True
        assert agent.available_tool_classes() == []

    def test_system_prompt(self, provider):
        prompt = ProjectAgent(provider=provider).system_prompt()
        assert '"project_agent"' in prompt
        assert "Finds projects by name." in prompt
        assert "Answer in English" in prompt
        assert re.search(r"The current time is \d{4}-\d{2}-\d{2}T", prompt)

    def test_available_tools_legacy_format(self):
        tools = BrokenIssueAgent().available_tools()
        assert [tool["function"]["name"] for tool in tools] == ["exploding_tools__lookup"]
        assert BrokenIssueAgent().available_tool_classes() == ExplodingTools.tool_classes()


class TestAssistant:
    def test_built_once(self, provider):
        agent = ProjectAgent(provider=provider)
        assert agent.assistant is agent.assistant

    def test_add_message_queues_on_assistant(self, provider):
        agent = ProjectAgent(provider=provider)
        agent.add_message("user", "find project demo")
        assert agent.assistant.messages[-1].content == "find project demo"


class TestChat:
    def test_replays_history_and_asks_last(self, provider, scripted_client):
        scripted_client.responses = ["It is 7."]
        agent = ProjectAgent(provider=provider)
        answer = agent.chat([
            {"role": "user", "content": "Which project?"},
            {"role": "assistant", "content": "demo"},
            {"role": "user", "content": "Its id?"},
        ])
        assert answer == "It is 7."
        assert scripted_client.contents(0)[1:] == ["Which project?", "demo", "Its id?"]
        assert scripted_client.calls[0]["tools"] is None

    def test_streams_to_callback(self, provider, scripted_client):
        scripted_client.responses = ["streamed"]
        chunks = []
        answer = ProjectAgent(provider=provider).chat([{"role": "user", "content": "hi"}], callback=chunks.append)
        assert "".join(chunks) == answer == "streamed"

    def test_each_call_uses_fresh_session(self, provider, scripted_client):
        scripted_client.responses = ["one", "two"]
        agent = ProjectAgent(provider=provider)
        agent.chat([{"role": "user", "content": "first"}])
        agent.chat([{"role": "user", "content": "second"}])
        assert "first" not in scripted_client.contents(1)

    def test_records_generation(self, provider, scripted_client):
        scripted_client.responses = [text_response("hi", usage=UsageStats(4, 1, 5))]
        tracer = LoggingTracer()
        ProjectAgent(provider=provider, tracer=tracer).chat([{"role": "user", "content": "hello"}])
        generation = tracer.generations[0]
        assert generation.name == "project_agent.chat"
        assert generation.model == "fake-model"
        assert generation.input == "hello"
        assert generation.usage == UsageStats(4, 1, 5)

    def test_empty_messages_rejected(self, provider):
        with pytest.raises(ValueError):
            ProjectAgent(provider=provider).chat([])


class TestPerformTask:
    def test_success(self, provider, scripted_client):
        scripted_client.responses = ["Project id is 7."]
        tracer = LoggingTracer()
        agent = ProjectAgent(provider=provider, tracer=tracer)
        agent.add_message(MessageRole.USER, "Find the id of demo")
        response = agent.perform_task()
        assert response == TaskResponse.create_success("Project id is 7.")
        assert tracer.spans[0].name == "project_agent.perform_task"
        assert tracer.spans[0].input == "Find the id of demo"

    def test_tool_failure_becomes_error_response(self, settings):
        call = ToolCall(id="call_1", name="exploding_tools__lookup", arguments={"project_id": 7})
        client = ScriptedClient([tool_call_response(call)])
        agent = BrokenIssueAgent(provider=ChatProvider(settings, client=client))
        agent.add_message("user", "List issues of project 7")
        response = agent.perform_task()
        assert response.is_error()
        assert "database unavailable" in response.error

    def test_tools_offered_to_model(self, settings):
        client = ScriptedClient(["nothing to do"])
        agent = BrokenIssueAgent(provider=ChatProvider(settings, client=client))
        agent.add_message("user", "hi")
        agent.perform_task()
        assert [tool.qualified_name for tool in client.calls[0]["tools"]] == ["exploding_tools__lookup"]
