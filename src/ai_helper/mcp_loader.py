"""Register one agent per MCP server declared in a config file.

The file uses the common ``mcpServers`` layout::

    {
      "mcpServers": {
        "github": {"command": "npx", "args": ["-y", "@modelcontextprotocol/server-github"],
                   "env": {"GITHUB_TOKEN": "${GITHUB_TOKEN}"}},
        "search": {"url": "https://example.com/mcp", "headers": {"Authorization": "Bearer x"}}
      }
    }

Entries without a ``type`` are inferred: ``command``/``args`` mean stdio, a
``url`` means http. Invalid entries are logged and skipped.
"""

import functools
import json
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from .agents.mcp_agent import McpAgent
from .logging import get_logger
from .registry import AgentRegistry, get_registry
from .tools.mcp_tools import SERVER_TYPES, McpServerConfig, McpServerConnection, McpTools
from .utils.text import snake_case

logger = get_logger(__name__)


def load_config(path: str | Path) -> dict[str, Any]:
    """Read the config file. A missing or unreadable file yields ``{}``."""
    config_path = Path(path)
    if not config_path.exists():
        logger.warning(f"MCP config file not found: {config_path}")
        return {}
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in MCP config file {config_path}: {e}")
        return {}
    except OSError as e:
        logger.error(f"Error reading MCP config file {config_path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.error(f"MCP config file {config_path} must contain a JSON object")
        return {}
    return data


def infer_server_type(entry: dict[str, Any]) -> str | None:
    if entry.get("command") or entry.get("args"):
        return "stdio"
    if entry.get("url"):
        return "http"
    return None


def _valid_url(url: Any) -> bool:
    if not isinstance(url, str):
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def parse_server_config(name: str, entry: Any) -> McpServerConfig | None:
    """Validate one ``mcpServers`` entry.

    Returns:
        The server config, or None if the entry is invalid.
    """
    if not isinstance(entry, dict):
        return None
    server_type = entry.get("type") or infer_server_type(entry)
    if server_type not in SERVER_TYPES:
        return None
    if server_type == "stdio":
        if not (entry.get("command") or entry.get("args")):
            return None
    elif not _valid_url(entry.get("url")):
        return None
    return McpServerConfig(
        name=name,
        type=server_type,
        command=entry.get("command"),
        args=tuple(str(arg) for arg in entry.get("args") or ()),
        env=dict(entry.get("env") or {}),
        url=entry.get("url"),
        headers=dict(entry.get("headers") or {}),
    )


def agent_name(server_name: str) -> str:
    """Registry name of a server's agent, e.g. ``mcp_github``."""
    return f"mcp_{snake_case(server_name)}"


def load_mcp_agents(
    path: str | Path,
    registry: AgentRegistry | None = None,
) -> list[str]:
    """Register an agent for every valid server in the config file.

    Servers are not contacted here; their tools are listed the first time
    an agent needs them.

    Args:
        path: Config file path.
        registry: Registry to register into; defaults to the process-wide one.

    Returns:
        Names of the registered agents.
    """
    registry = registry or get_registry()
    servers = load_config(path).get("mcpServers")
    if not isinstance(servers, dict):
        return []

    registered = []
    for server_name, entry in servers.items():
        config = parse_server_config(server_name, entry)
        if config is None:
            logger.warning(f"Invalid configuration for MCP server '{server_name}': {entry}")
            continue
        name = agent_name(server_name)
        toolset = McpTools(McpServerConnection(config))
        registry.register(name, functools.partial(McpAgent, name=name, toolset=toolset))
        logger.info(f"registered MCP agent {name} for server '{server_name}' ({config.type})")
        registered.append(name)
    return registered
