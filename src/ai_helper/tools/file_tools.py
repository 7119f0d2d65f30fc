"""Read-only filesystem tools.

All paths are validated against the configured root directories
(``file_agent_roots`` setting) to prevent path traversal.
"""

from datetime import datetime, timezone

from ..config import get_settings
from ..logging import get_logger
from .base import BaseTools, define_function, prop
from .security import PathValidator

logger = get_logger(__name__)

# files larger than this are returned truncated
MAX_READ_CHARS = 100_000

_path_validator: PathValidator | None = None


def get_path_validator() -> PathValidator:
    """Get or create the shared path validator."""
    global _path_validator
    if _path_validator is None:
        _path_validator = PathValidator(get_settings().file_agent_roots)
    return _path_validator


def configure_allowed_paths(paths: list[str] | None) -> None:
    """Replace the allowed root directories.

    ``None`` reverts to the ``file_agent_roots`` setting.
    """
    global _path_validator
    _path_validator = PathValidator(paths) if paths is not None else None


class FileTools(BaseTools):
    """Inspect files below the allowed root directories."""

    @define_function(
        "List the contents of a directory. Returns the entries with their type and size.",
        prop("path", "string", "Directory to list. Defaults to the first allowed root."),
        prop("pattern", "string", "Optional glob pattern, e.g. '*.py'."),
    )
    def list_directory(self, path: str = ".", pattern: str | None = None) -> list[dict]:
        directory = get_path_validator().validate(path)
        if not directory.is_dir():
            raise NotADirectoryError(f"Not a directory: {path}")
        entries = sorted(directory.glob(pattern) if pattern else directory.iterdir())
        return [
            {
                "name": entry.name,
                "type": "directory" if entry.is_dir() else "file",
                "size": entry.stat().st_size if entry.is_file() else None,
            }
            for entry in entries
        ]

    @define_function(
        "Read a text file. Long files are truncated.",
        prop("path", "string", "The path of the file to read.", required=True),
        prop("max_chars", "integer", f"Maximum number of characters to return (default {MAX_READ_CHARS})."),
    )
    def read_file(self, path: str, max_chars: int | None = None) -> str:
        file_path = get_path_validator().validate(path)
        limit = max_chars or MAX_READ_CHARS
        text = file_path.read_text(encoding="utf-8")
        if len(text) > limit:
            logger.debug(f"truncating {file_path} from {len(text)} to {limit} characters")
            return text[:limit] + f"\n... [truncated, {len(text) - limit} more characters]"
        return text

    @define_function(
        "Return metadata of a file or directory: type, size and modification time.",
        prop("path", "string", "The path to inspect.", required=True),
    )
    def file_info(self, path: str) -> dict:
        target = get_path_validator().validate(path)
        stat = target.stat()
        return {
            "path": str(target),
            "type": "directory" if target.is_dir() else "file",
            "size": stat.st_size,
            "modified": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
        }
