"""Agent that inspects files on the local filesystem."""

from ..prompts import FILE_AGENT_BACKSTORY
from ..tools.base import BaseTools
from ..tools.file_tools import FileTools
from .base import BaseAgent


class FileAgent(BaseAgent):
    """Reads files below the directories of the ``file_agent_roots`` setting."""

    def backstory(self) -> str:
        return FILE_AGENT_BACKSTORY

    def enabled(self) -> bool:
        return bool(self.settings.file_agent_roots)

    def available_tool_providers(self) -> list[type[BaseTools]]:
        return [FileTools]
