"""Path validation for file tools.

Every path a model hands to a file tool is resolved and checked against the
configured root directories before it is touched.
"""

from pathlib import Path

from ..exceptions import PathTraversalError


class PathValidator:
    """Validates file paths to prevent directory traversal attacks.

    Relative paths are resolved against the first allowed root.

    Example:
        validator = PathValidator(["/home/user/project"])
        safe_path = validator.validate("src/main.py")  # OK
        validator.validate("../../etc/passwd")  # Raises PathTraversalError
    """

    def __init__(self, allowed_roots: list[str] | None = None):
        """Initialize with allowed root directories.

        Args:
            allowed_roots: List of allowed root directories.
                          Defaults to current working directory.
        """
        if allowed_roots:
            self.allowed_roots = [Path(root).expanduser().resolve() for root in allowed_roots]
        else:
            self.allowed_roots = [Path.cwd().resolve()]

    def validate(self, path: str) -> Path:
        """Validate and resolve a path.

        Returns:
            Resolved absolute Path object

        Raises:
            PathTraversalError: If path escapes allowed roots
        """
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self.allowed_roots[0] / candidate
        resolved = candidate.resolve()

        for root in self.allowed_roots:
            if resolved == root or root in resolved.parents:
                return resolved

        raise PathTraversalError(
            attempted_path=str(resolved),
            allowed_base=str(self.allowed_roots[0]),
        )

    def is_valid(self, path: str) -> bool:
        """Check if a path is valid without raising an exception."""
        try:
            self.validate(path)
            return True
        except PathTraversalError:
            return False
