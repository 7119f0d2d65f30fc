"""ai-helper - a team of AI agents that answers requests together.

A leader agent states the goal of a request, plans steps for specialised
agents, routes each step to its agent and writes the final answer from
their results. Agents use tools declared with a small schema DSL and work
with any supported LLM provider.
"""

__version__ = "0.1.0"

from .exceptions import (
    AgentError,
    AgentNotFoundError,
    AiHelperError,
    ClientError,
    PlanningError,
    SecurityError,
    StructuredOutputError,
    ToolError,
)
from .helper import AiHelper
from .registry import AgentRegistry, get_registry, register_agent
from .tool_response import TaskResponse, ToolResponse
from .types import (
    FinishReason,
    MessageRole,
    StreamChunk,
    ToolCall,
    UnifiedMessage,
    UnifiedResponse,
)

__all__ = [
    "__version__",
    # entry point
    "AiHelper",
    # agents
    "AgentRegistry",
    "get_registry",
    "register_agent",
    # responses
    "TaskResponse",
    "ToolResponse",
    # types
    "FinishReason",
    "MessageRole",
    "StreamChunk",
    "ToolCall",
    "UnifiedMessage",
    "UnifiedResponse",
    # exceptions
    "AgentError",
    "AgentNotFoundError",
    "AiHelperError",
    "ClientError",
    "PlanningError",
    "SecurityError",
    "StructuredOutputError",
    "ToolError",
]
