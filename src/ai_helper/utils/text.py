"""Text helpers shared by the tool DSL, agents and the planner."""

import json
import re
from typing import Any

_FIRST_CAP = re.compile(r"(.)([A-Z][a-z]+)")
_ALL_CAP = re.compile(r"([a-z0-9])([A-Z])")
_FENCED_BLOCK = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)


def snake_case(name: str) -> str:
    """Convert a CamelCase identifier to snake_case.

    Examples:
        >>> snake_case("FileAgent")
        'file_agent'
        >>> snake_case("MCPTools")
        'mcp_tools'
    """
    name = _FIRST_CAP.sub(r"\1_\2", name)
    return _ALL_CAP.sub(r"\1_\2", name).replace("-", "_").lower()


def extract_json(text: str) -> Any:
    """Parse a JSON value out of a model response.

    Accepts bare JSON as well as JSON wrapped in a ```json fenced block,
    which is how most models format structured answers.

    Raises:
        json.JSONDecodeError: If no valid JSON can be found.
    """
    stripped = text.strip()
    if stripped.startswith(("{", "[")):
        return json.loads(stripped)

    match = _FENCED_BLOCK.search(text)
    if match:
        return json.loads(match.group(1).strip())

    return json.loads(stripped)
