"""Tests for chat sessions and the chat provider."""

import pytest
from unittest.mock import patch

from ai_helper.chat import ChatProvider, ChatSession
from ai_helper.config import Settings
from ai_helper.exceptions import (
    AiHelperError,
    ProviderUnavailableError,
    RateLimitError,
    StreamInterruptedError,
    ToolExecutionError,
)
from ai_helper.tools.base import BaseTools, define_function, prop
from ai_helper.types import (
    FinishReason,
    MessageRole,
    PartialToolCall,
    StreamChunk,
    ToolCall,
    UsageStats,
)

from conftest import ExplodingTools, ScriptedClient, text_response, tool_call_response


class CalculatorTools(BaseTools):
    @define_function(
        "Add two numbers.",
        prop("a", "number", "First operand", required=True),
        prop("b", "number", "Second operand", required=True),
    )
    def add(self, a: float, b: float) -> float:
        return a + b


def add_call(call_id="call_1", **arguments):
    return ToolCall(id=call_id, name="calculator_tools__add", arguments=arguments or {"a": 1, "b": 2})


def failing_stream(*chunks):
    """Stream that yields ``chunks`` and then loses the connection."""
    yield from chunks
    raise ProviderUnavailableError("connection reset")


class TestChatSession:
    def test_ask_returns_answer_and_keeps_history(self):
        client = ScriptedClient(["Hello!"])
        session = ChatSession(client, instructions="Be nice.")
        response = session.ask("Hi")
        assert response.content == "Hello!"
        assert response.model == "fake-model"
        assert [m.role for m in session.messages] == [
            MessageRole.SYSTEM, MessageRole.USER, MessageRole.ASSISTANT,
        ]

    def test_tool_loop(self):
        client = ScriptedClient([tool_call_response(add_call()), "The sum is 3."])
        session = ChatSession(client, tools=CalculatorTools.tool_classes())
        response = session.ask("What is 1 + 2?")
        assert response.content == "The sum is 3."
        tool_message = client.calls[1]["messages"][-1]
        assert tool_message.role == MessageRole.TOOL
        assert tool_message.content == "3"
        assert tool_message.tool_call_id == "call_1"
        assert client.calls[0]["tools"][0].qualified_name == "calculator_tools__add"

    def test_unknown_tool_is_reported_to_model(self):
        call = ToolCall(id="call_9", name="nope", arguments={})
        client = ScriptedClient([tool_call_response(call), "Sorry."])
        session = ChatSession(client, tools=CalculatorTools.tool_classes())
        session.ask("Do it")
        assert client.calls[1]["messages"][-1].content == "Tool 'nope' not found"

    def test_invalid_arguments_are_reported_to_model(self):
        client = ScriptedClient([tool_call_response(add_call(a=1)), "Sorry."])
        session = ChatSession(client, tools=CalculatorTools.tool_classes())
        session.ask("Add")
        assert "missing required argument 'b'" in client.calls[1]["messages"][-1].content

    def test_tool_exception_propagates(self):
        call = ToolCall(id="call_1", name="exploding_tools__lookup", arguments={"project_id": 1})
        client = ScriptedClient([tool_call_response(call)])
        session = ChatSession(client, tools=ExplodingTools.tool_classes())
        with pytest.raises(ToolExecutionError, match="database unavailable"):
            session.ask("Look it up")

    def test_max_tool_rounds(self):
        client = ScriptedClient([tool_call_response(add_call(f"call_{i}")) for i in range(2)])
        session = ChatSession(client, tools=CalculatorTools.tool_classes(), max_tool_rounds=2)
        with pytest.raises(AiHelperError, match="2 tool rounds"):
            session.ask("Loop forever")

    def test_usage_summed_over_turns(self):
        first = tool_call_response(add_call(), usage=UsageStats(10, 2, 12))
        client = ScriptedClient([first, text_response("3", usage=UsageStats(15, 1, 16))])
        session = ChatSession(client, tools=CalculatorTools.tool_classes())
        assert session.ask("1 + 2?").usage == UsageStats(25, 3, 28)

    def test_end_message_callbacks_see_every_turn(self):
        client = ScriptedClient([tool_call_response(add_call()), "3"])
        session = ChatSession(client, tools=CalculatorTools.tool_classes())
        turns = []
        session.on_end_message(turns.append)
        session.ask("1 + 2?")
        assert [turn.content for turn in turns] == ["", "3"]

    def test_ask_without_content_uses_queued_messages(self):
        client = ScriptedClient(["ok"])
        session = ChatSession(client)
        session.add_message("user", "queued instruction")
        session.ask(None)
        assert client.contents(0) == ["queued instruction"]

    def test_reset_keeps_instructions(self):
        client = ScriptedClient(["ok"])
        session = ChatSession(client, instructions="sys")
        session.ask("hi")
        session.reset()
        assert [m.content for m in session.messages] == ["sys"]

    def test_non_streaming_response_still_reaches_callback(self):
        client = ScriptedClient(["whole answer"])
        chunks = []
        ChatSession(client).ask("hi", on_chunk=chunks.append)
        assert chunks == ["whole answer"]
        assert client.calls[0]["stream"] is True

    def test_streaming_response(self):
        stream = [
            StreamChunk(delta_content="Hel"),
            StreamChunk(delta_content="lo"),
            StreamChunk(finish_reason=FinishReason.STOP, usage=UsageStats(3, 2, 5)),
        ]
        client = ScriptedClient([iter(stream)])
        chunks = []
        response = ChatSession(client).ask("hi", on_chunk=chunks.append)
        assert chunks == ["Hel", "lo"]
        assert response.content == "Hello"
        assert response.usage == UsageStats(3, 2, 5)

    def test_streamed_tool_call(self):
        stream = [
            StreamChunk(delta_tool_call=PartialToolCall(index=0, id="call_1", name="calculator_tools__add")),
            StreamChunk(delta_tool_call=PartialToolCall(index=0, arguments_delta='{"a": 2,')),
            StreamChunk(delta_tool_call=PartialToolCall(index=0, arguments_delta=' "b": 5}')),
            StreamChunk(finish_reason=FinishReason.TOOL_USE),
        ]
        client = ScriptedClient([iter(stream), iter([StreamChunk(delta_content="7")])])
        session = ChatSession(client, tools=CalculatorTools.tool_classes())
        assert session.ask("2 + 5?", on_chunk=lambda _: None).content == "7"
        assert client.calls[1]["messages"][-1].content == "7"

    def test_rate_limit_is_retried(self):
        client = ScriptedClient([RateLimitError("slow down", retry_after=0), "finally"])
        with patch("ai_helper.clients.base.time.sleep"):
            assert ChatSession(client).ask("hi").content == "finally"
        assert len(client.calls) == 2

    def test_stream_failing_after_output_is_not_retried(self):
        client = ScriptedClient([
            failing_stream(StreamChunk(delta_content="Hel")),
            iter([StreamChunk(delta_content="Hel"), StreamChunk(delta_content="lo")]),
        ])
        chunks = []
        with patch("ai_helper.clients.base.time.sleep"), pytest.raises(StreamInterruptedError):
            ChatSession(client).ask("hi", on_chunk=chunks.append)
        assert chunks == ["Hel"]
        assert len(client.calls) == 1

    def test_stream_failing_before_output_is_retried(self):
        client = ScriptedClient([
            failing_stream(StreamChunk(usage=UsageStats(1, 0, 1))),
            iter([StreamChunk(delta_content="Hel"), StreamChunk(delta_content="lo")]),
        ])
        chunks = []
        with patch("ai_helper.clients.base.time.sleep"):
            response = ChatSession(client).ask("hi", on_chunk=chunks.append)
        assert chunks == ["Hel", "lo"]
        assert response.content == "Hello"
        assert len(client.calls) == 2

class TestChatProvider:
    def test_injected_client_is_shared(self, settings, mock_client):
        provider = ChatProvider(settings, client=mock_client)
        assert provider.create_session().client is mock_client
        assert provider.model_name == "mock-model"

    def test_configure_without_provider_raises(self):
        settings = Settings(_env_file=None)
        with patch.object(Settings, "detect_provider", return_value=None):
            with pytest.raises(ValueError, match="No LLM provider configured"):
                ChatProvider(settings).configure()

    def test_create_client_applies_temperature(self, settings):
        with patch("ai_helper.clients.factory.create_client") as create_client:
            ChatProvider(settings).create_session(instructions="x", temperature=0.3)
        kwargs = create_client.call_args.kwargs
        assert create_client.call_args.args[0] == "openai"
        assert kwargs["client_config"]["temperature"] == 0.3
        assert kwargs["settings"] is settings

    def test_session_uses_max_tool_rounds_setting(self, settings, mock_client):
        settings.max_tool_rounds = 3
        session = ChatProvider(settings, client=mock_client).create_session()
        assert session.max_tool_rounds == 3
