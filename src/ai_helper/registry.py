"""Catalog of the agents available to the leader.

The registry maps an agent name to the callable that builds it. It is the
only state shared between requests: entries are added when agent modules
are loaded and MCP servers are discovered, and only read while requests are
being processed.
"""

import importlib
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Callable, Iterator

from .exceptions import AgentError, AgentNotFoundError
from .logging import get_logger

if TYPE_CHECKING:
    from .agents.base import BaseAgent

logger = get_logger(__name__)

LEADER_NAME = "leader_agent"
LEADER_ALIAS = "leader"

AgentFactory = Callable[..., "BaseAgent"]

# agents shipped with the package, imported on first use
BUILTIN_AGENTS: dict[str, str] = {
    LEADER_NAME: "ai_helper.agents.leader.LeaderAgent",
    "system_agent": "ai_helper.agents.system_agent.SystemAgent",
    "file_agent": "ai_helper.agents.file_agent.FileAgent",
}


@dataclass(frozen=True)
class AgentDescriptor:
    """Registry entry.

    Attributes:
        name: Name the planner uses to address the agent.
        implementation: Agent class, any callable returning an agent, or the
            dotted import path of one.
        enabled: Entries registered disabled are never offered to the planner.
    """
    name: str
    implementation: AgentFactory | str
    enabled: bool = True

    def resolve(self) -> AgentFactory:
        """Return the callable that builds the agent.

        Raises:
            AgentError: If a dotted path cannot be imported.
        """
        if not isinstance(self.implementation, str):
            return self.implementation
        module_path, _, attr = self.implementation.rpartition(".")
        try:
            module = importlib.import_module(module_path)
            return getattr(module, attr)
        except (ImportError, AttributeError, ValueError) as e:
            raise AgentError(
                f"Cannot resolve agent '{self.name}' implementation '{self.implementation}': {e}"
            ) from e


def canonical_name(name: str) -> str:
    """Map the leader synonym to its registry name."""
    return LEADER_NAME if name == LEADER_ALIAS else name


def is_leader(name: str) -> bool:
    return canonical_name(name) == LEADER_NAME


class AgentRegistry:
    """Ordered catalog of agent implementations.

    Names are unique; registering a name again replaces the earlier entry and
    moves it to the end.
    """

    def __init__(self) -> None:
        self._entries: list[AgentDescriptor] = []

    def register(
        self,
        name: str,
        implementation: AgentFactory | str,
        enabled: bool = True,
    ) -> AgentDescriptor:
        """Add an agent, replacing any entry of the same name."""
        self._entries = [entry for entry in self._entries if entry.name != name]
        descriptor = AgentDescriptor(name=name, implementation=implementation, enabled=enabled)
        self._entries.append(descriptor)
        logger.debug(f"registered agent {name}")
        return descriptor

    def remove(self, name: str) -> bool:
        """Remove an agent. Returns False if it was not registered."""
        before = len(self._entries)
        self._entries = [entry for entry in self._entries if entry.name != name]
        return len(self._entries) != before

    def find(self, name: str) -> AgentDescriptor | None:
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    def names(self) -> list[str]:
        return [entry.name for entry in self._entries]

    def instantiate(self, name: str, **params: Any) -> "BaseAgent":
        """Build the agent registered under ``name``.

        Args:
            name: Agent name; ``leader`` is accepted for the leader agent.
            **params: Constructor parameters, typically ``project``,
                ``tracer`` and ``provider``.

        Raises:
            AgentNotFoundError: If no agent is registered under the name.
        """
        agent_name = canonical_name(name)
        descriptor = self.find(agent_name)
        if descriptor is None:
            raise AgentNotFoundError(agent_name)
        return descriptor.resolve()(**params)

    def list_enabled(self, exclude: tuple[str, ...] = ()) -> list[dict[str, str]]:
        """Describe the agents the planner may use.

        Every entry is built without parameters and asked for its backstory.
        Entries that cannot be built, or that fail while describing
        themselves, are skipped with a warning.

        Args:
            exclude: Agent names to leave out.

        Returns:
            ``[{"agent_name": ..., "backstory": ...}]`` in registration order.
        """
        excluded = {canonical_name(name) for name in exclude}
        catalog = []
        for descriptor in list(self._entries):
            if descriptor.name in excluded or not descriptor.enabled:
                continue
            try:
                agent = descriptor.resolve()()
                if not agent.enabled():
                    continue
                catalog.append({"agent_name": descriptor.name, "backstory": agent.backstory()})
            except Exception as e:
                logger.warning(f"skipping agent {descriptor.name}: {e}")
        return catalog

    def snapshot(self) -> tuple[AgentDescriptor, ...]:
        """Capture the current entries for :meth:`restore`."""
        return tuple(self._entries)

    def restore(self, snapshot: tuple[AgentDescriptor, ...]) -> None:
        self._entries = list(snapshot)

    def clear(self) -> None:
        self._entries = []

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.find(canonical_name(name)) is not None

    def __iter__(self) -> Iterator[AgentDescriptor]:
        return iter(list(self._entries))


@lru_cache
def get_registry() -> AgentRegistry:
    """Get the process-wide registry with the built-in agents registered.

    Call get_registry.cache_clear() to start over with a fresh registry.
    """
    registry = AgentRegistry()
    for name, path in BUILTIN_AGENTS.items():
        registry.register(name, path)
    return registry


def register_agent(name: str, enabled: bool = True) -> Callable[[type], type]:
    """Class decorator registering an agent in the process-wide registry.

    Example:
        @register_agent("weather_agent")
        class WeatherAgent(BaseAgent):
            ...
    """
    def decorator(cls: type) -> type:
        get_registry().register(name, cls, enabled=enabled)
        return cls

    return decorator
