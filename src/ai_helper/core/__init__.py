"""Core chat-session components.

- ToolExecutor: runs model-requested tool calls
- MemoryManager: conversation history of one session
"""

from .memory_manager import MemoryManager
from .tool_executor import ToolExecutor

__all__ = ["MemoryManager", "ToolExecutor"]
