"""Pydantic models for API requests and responses."""

from typing import Any

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """One message of the conversation."""

    role: str = "user"
    content: str


class ChatRequest(BaseModel):
    """Conversation to answer; the last message is the request."""

    messages: list[ChatMessage] = Field(min_length=1)
    project: Any = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)

    def message_dicts(self) -> list[dict[str, str]]:
        return [message.model_dump() for message in self.messages]

    def options(self) -> dict:
        return {"temperature": self.temperature} if self.temperature is not None else {}


class ChatAnswer(BaseModel):
    """Final answer of a request."""

    answer: str


class AgentInfo(BaseModel):
    """An agent the leader may plan with."""

    agent_name: str
    backstory: str
