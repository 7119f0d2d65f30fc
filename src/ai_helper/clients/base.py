"""Base class for LLM clients.

All LLM provider clients inherit from BaseLLMClient and implement
the normalization methods to convert between provider-specific formats
and the unified types.
"""

import functools
import random
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterator, TypeVar

from ..exceptions import ProviderUnavailableError, RateLimitError
from ..logging import get_logger
from ..tools.base import Tool
from ..types import (
    StreamChunk,
    UnifiedMessage,
    UnifiedResponse,
)

logger = get_logger(__name__)

T = TypeVar("T")

# some providers reject function declarations without a parameter object
EMPTY_PARAMETERS: dict[str, Any] = {"type": "object", "properties": {}}


def with_retry(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for retrying API calls with exponential backoff.

    Retries on RateLimitError and ProviderUnavailableError. Other exceptions
    are raised immediately. A ``retry_after`` hint on a RateLimitError takes
    precedence over the computed delay.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        initial_delay: Initial delay in seconds between retries (default: 1.0)
        max_delay: Maximum delay in seconds (default: 60.0)
        exponential_base: Base for exponential backoff (default: 2.0)
        jitter: Whether to add random jitter to delay (default: True)

    Returns:
        Decorated function with retry logic.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            delay = initial_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except (RateLimitError, ProviderUnavailableError) as e:
                    if attempt == max_retries:
                        logger.warning(
                            f"max retries ({max_retries}) exceeded for {func.__name__}: {e}"
                        )
                        raise

                    retry_after = getattr(e, "retry_after", None)
                    if retry_after:
                        actual_delay = min(float(retry_after), max_delay)
                    else:
                        actual_delay = min(delay, max_delay)
                        if jitter:
                            actual_delay *= (0.5 + random.random())

                    logger.info(
                        f"retry {attempt + 1}/{max_retries} for {func.__name__} "
                        f"after {actual_delay:.1f}s: {e}"
                    )
                    time.sleep(actual_delay)
                    delay *= exponential_base

            raise RuntimeError("Unexpected retry loop exit")

        return wrapper
    return decorator


class BaseLLMClient(ABC):
    """Abstract base class for all LLM clients.

    Each client is responsible for:
    1. Converting UnifiedMessage list to provider format
    2. Converting Tool definitions to provider format
    3. Making API calls
    4. Converting responses back to UnifiedResponse/StreamChunk

    Chat sessions only interact with unified types - all provider-specific
    handling is encapsulated within each client implementation.
    """

    def __init__(self, client_config: dict | None = None):
        """Initialize the client.

        Args:
            client_config: Optional dictionary of configuration parameters
                           (e.g. temperature, max_tokens, etc.)
        """
        self.client_config = client_config or {}

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Name of the model this client talks to."""

    @abstractmethod
    def generate(
        self,
        messages: list[UnifiedMessage],
        tools: list[Tool] | None = None,
        stream: bool = False,
    ) -> UnifiedResponse | Iterator[StreamChunk]:
        """Generate a response from the LLM.

        Args:
            messages: Conversation history in unified format
            tools: Optional list of tools available to the model
            stream: Whether to stream the response

        Returns:
            UnifiedResponse for non-streaming, Iterator[StreamChunk] for streaming
        """

    @abstractmethod
    def _convert_messages(self, messages: list[UnifiedMessage]) -> Any:
        """Convert unified messages to provider-specific format.

        Each provider has different message formats:
        - OpenAI/Azure: list of dicts with role/content/tool_calls
        - Anthropic: system separated, content blocks for tools
        - Google: parts-based format with function_call/function_response
        """

    @abstractmethod
    def _convert_tools(self, tools: list[Tool]) -> list[Any]:
        """Convert tool definitions to provider-specific format.

        Each provider uses different tool schemas:
        - OpenAI/Azure: {type: "function", function: {name, description, parameters}}
        - Anthropic: {name, description, input_schema}
        - Google: FunctionDeclaration(name, description, parameters)

        Tools are always presented under their qualified name so that
        functions of different tool groups cannot collide.
        """

    @abstractmethod
    def _parse_response(self, response: Any) -> UnifiedResponse:
        """Parse provider response into unified format."""

    @abstractmethod
    def _parse_stream_chunk(self, chunk: Any) -> StreamChunk:
        """Parse a streaming chunk into unified format."""

    @staticmethod
    def tool_parameters(tool: Tool) -> dict[str, Any]:
        """JSON schema of a tool's arguments, empty object for no-argument tools."""
        return tool.parameters if tool.parameters is not None else dict(EMPTY_PARAMETERS)
