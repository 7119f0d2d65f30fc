"""Room in which the leader hands out steps to the other agents.

The room keeps an append-only transcript of every instruction and result.
When an agent receives a task it is first shown the transcript entries it
has not seen yet, so later steps can build on the results of earlier ones.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import AgentNotFoundError
from .logging import get_logger
from .prompts import CHAT_ROOM_GOAL
from .tool_response import TaskResponse
from .types import MessageRole

if TYPE_CHECKING:
    from .agents.base import BaseAgent

logger = get_logger(__name__)


@dataclass(frozen=True)
class TranscriptEntry:
    """One message exchanged in the room.

    Attributes:
        role: ``user`` for instructions, ``assistant`` for results.
        sender: Name of the agent that sent the message.
        recipient: Name of the agent the message was addressed to.
        content: Message text.
    """
    role: str
    sender: str
    recipient: str
    content: str

    def render(self) -> str:
        return f"{self.sender}: {self.content}"


class ChatRoom:
    """Members working towards one goal, addressed by name."""

    def __init__(self, goal: str):
        self.goal = goal
        self._agents: dict[str, "BaseAgent"] = {}
        self._transcript: list[TranscriptEntry] = []
        # transcript length each member has already been shown
        self._delivered: dict[str, int] = {}

    @property
    def agents(self) -> dict[str, "BaseAgent"]:
        return dict(self._agents)

    @property
    def transcript(self) -> tuple[TranscriptEntry, ...]:
        return tuple(self._transcript)

    @property
    def messages(self) -> list[dict[str, str]]:
        """The transcript as chat messages, ready to splice into a prompt."""
        return [{"role": entry.role, "content": entry.render()} for entry in self._transcript]

    def add_agent(self, agent: "BaseAgent", name: str | None = None) -> None:
        """Add a member, addressed by ``name`` or else by its role."""
        name = name or agent.role()
        self._agents[name] = agent
        self._delivered.setdefault(name, 0)

    def share_goal(self) -> None:
        """Tell every member what the team is working on."""
        message = CHAT_ROOM_GOAL.format(goal=self.goal)
        for agent in self._agents.values():
            agent.add_message(MessageRole.SYSTEM, message)

    def send_task(self, from_agent: str, to_agent: str, task: str) -> TaskResponse:
        """Have ``to_agent`` perform ``task`` and record the exchange.

        Args:
            from_agent: Role of the sender, usually ``leader``.
            to_agent: Name of the member that performs the task.
            task: Instruction text.

        Returns:
            The member's task response. Errors are returned, not raised.

        Raises:
            AgentNotFoundError: If no member is named ``to_agent``.
        """
        agent = self._agents.get(to_agent)
        if agent is None:
            raise AgentNotFoundError(to_agent)

        for entry in self._transcript[self._delivered[to_agent]:]:
            agent.add_message(MessageRole.USER, entry.render())
        agent.add_message(MessageRole.USER, task)
        self._transcript.append(TranscriptEntry("user", from_agent, to_agent, task))

        logger.debug(f"{from_agent} -> {to_agent}: {task}")
        response = agent.perform_task()
        if response.is_error():
            logger.warning(f"{to_agent} failed: {response.error}")

        self._transcript.append(TranscriptEntry("assistant", to_agent, from_agent, response.text))
        # the agent already holds its own instruction and answer
        self._delivered[to_agent] = len(self._transcript)
        return response
