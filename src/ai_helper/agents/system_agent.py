"""Agent answering questions about the runtime environment."""

from ..prompts import SYSTEM_AGENT_BACKSTORY
from ..tools.base import BaseTools
from ..tools.system_tools import SystemTools
from .base import BaseAgent


class SystemAgent(BaseAgent):
    def backstory(self) -> str:
        return SYSTEM_AGENT_BACKSTORY

    def available_tool_providers(self) -> list[type[BaseTools]]:
        return [SystemTools]
