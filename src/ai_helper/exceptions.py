"""Custom exception hierarchy for the agent runtime.

This module defines all custom exceptions raised by the runtime,
organized into logical categories: client errors, tool errors, agent and
planning errors, and security errors.
"""


class AiHelperError(Exception):
    """Base exception for all runtime errors."""


# =============================================================================
# Client Errors - Issues with LLM API interactions
# =============================================================================

class ClientError(AiHelperError):
    """Base class for LLM client errors."""


class AuthenticationError(ClientError):
    """API key is invalid or missing."""


class RateLimitError(ClientError):
    """Rate limit exceeded."""

    def __init__(self, message: str = "Rate limit exceeded", retry_after: float | None = None):
        self.retry_after = retry_after
        if retry_after:
            message = f"{message}. Retry after: {retry_after}s"
        super().__init__(message)


class ProviderUnavailableError(ClientError):
    """Provider API is temporarily unavailable."""


class InvalidResponseError(ClientError):
    """Response from provider could not be parsed."""


class StreamInterruptedError(ClientError):
    """A streamed response failed after part of it was delivered."""


# =============================================================================
# Tool Errors - Issues with tool definition and execution
# =============================================================================

class ToolError(AiHelperError):
    """Base class for tool errors."""


class ToolNotFoundError(ToolError):
    """Requested tool does not exist."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool not found: {tool_name}")


class ToolExecutionError(ToolError):
    """Tool execution failed."""

    def __init__(self, tool_name: str, cause: Exception | str):
        self.tool_name = tool_name
        self.cause = cause
        super().__init__(f"Tool '{tool_name}' execution failed: {cause}")


class ToolValidationError(ToolError):
    """Tool arguments failed validation."""

    def __init__(self, tool_name: str, errors: list[str]):
        self.tool_name = tool_name
        self.errors = errors
        super().__init__(f"Tool '{tool_name}' validation failed: {', '.join(errors)}")


class ToolDefinitionError(ToolError):
    """A declared tool parameter tree is malformed."""


# =============================================================================
# Agent Errors - Registry lookups and agent runs
# =============================================================================

class AgentError(AiHelperError):
    """Base class for agent errors."""


class AgentNotFoundError(AgentError):
    """Requested agent is not registered."""

    def __init__(self, agent_name: str):
        self.agent_name = agent_name
        super().__init__(f"Agent not found: {agent_name}")


# =============================================================================
# Planning Errors - Goal and step generation
# =============================================================================

class PlanningError(AiHelperError):
    """The leader could not produce a usable plan."""


class StructuredOutputError(PlanningError):
    """Model output did not match the requested JSON schema."""

    def __init__(self, schema_name: str, response: str, cause: Exception | str):
        self.schema_name = schema_name
        self.response = response
        self.cause = cause
        super().__init__(f"Could not parse {schema_name} from model output: {cause}")


# =============================================================================
# Security Errors - Security-related issues
# =============================================================================

class SecurityError(AiHelperError):
    """Base class for security-related errors."""


class PathTraversalError(SecurityError):
    """Attempted path traversal attack."""

    def __init__(self, attempted_path: str, allowed_base: str):
        self.attempted_path = attempted_path
        self.allowed_base = allowed_base
        super().__init__(
            f"Path traversal blocked: '{attempted_path}' is outside allowed directory '{allowed_base}'"
        )
