"""Tools describing the runtime the helper runs in."""

import platform
import sys
from importlib import metadata

from .. import __version__
from ..config import get_settings
from .base import BaseTools, define_function, prop


class SystemTools(BaseTools):
    """Information about the interpreter, installed packages and agents."""

    @define_function(
        "Returns system information: ai-helper version, Python interpreter, "
        "operating system and the configured LLM provider.",
    )
    def get_system_info(self) -> dict:
        settings = get_settings()
        return {
            "ai_helper": {"version": __version__},
            "python": {
                "version": platform.python_version(),
                "implementation": platform.python_implementation(),
                "executable": sys.executable,
            },
            "platform": {
                "system": platform.system(),
                "release": platform.release(),
                "machine": platform.machine(),
            },
            "llm": {
                "provider": settings.detect_provider(),
                "model": settings.llm_model,
            },
        }

    @define_function(
        "Returns the installed Python packages with their versions.",
        prop("name_filter", "string", "Only return packages whose name contains this text."),
    )
    def list_packages(self, name_filter: str | None = None) -> dict:
        packages = {}
        for dist in metadata.distributions():
            name = dist.metadata["Name"]
            if not name:
                continue
            if name_filter and name_filter.lower() not in name.lower():
                continue
            packages[name] = dist.version
        return {"packages": dict(sorted(packages.items(), key=lambda kv: kv[0].lower()))}

    @define_function(
        "Returns the names of all agents registered with the helper.",
    )
    def list_agents(self) -> dict:
        from ..registry import get_registry

        return {"agents": get_registry().names()}
