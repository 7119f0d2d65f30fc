"""Conversation history of a chat session."""

from ..types import (
    MessageRole,
    UnifiedMessage,
)


class MemoryManager:
    """Manages the conversation history of one chat session.

    The system message, when present, is always the first entry and survives
    :meth:`clear`.
    """

    def __init__(self, system_prompt: str | None = None):
        self.history: list[UnifiedMessage] = []
        if system_prompt:
            self.history.append(UnifiedMessage(role=MessageRole.SYSTEM, content=system_prompt))

    def add_message(self, message: UnifiedMessage) -> None:
        self.history.append(message)

    def add_tool_result(self, tool_call_id: str, name: str, content: str) -> None:
        """Add a tool result message to conversation history.

        Args:
            tool_call_id: The ID of the tool call.
            name: The name of the tool.
            content: The result content.
        """
        self.history.append(UnifiedMessage(
            role=MessageRole.TOOL,
            content=content,
            tool_call_id=tool_call_id,
            name=name,
        ))

    def clear(self, keep_system: bool = True) -> None:
        """Clear conversation history.

        Args:
            keep_system: If True, preserve the system message.
        """
        if keep_system and self.history and self.history[0].role == MessageRole.SYSTEM:
            self.history = [self.history[0]]
        else:
            self.history = []

    def last_message(self, role: MessageRole | None = None) -> UnifiedMessage | None:
        """Most recent message, optionally restricted to one role."""
        for message in reversed(self.history):
            if role is None or message.role == role:
                return message
        return None

    def get_history(self) -> list[dict]:
        """Export history as list of dicts."""
        return [msg.to_dict() for msg in self.history]
