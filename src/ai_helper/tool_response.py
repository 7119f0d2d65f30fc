"""Uniform success/error envelope returned by tools and agent tasks."""

import json
from typing import Any

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"


class ToolResponse:
    """Result of a tool call or an agent task.

    Exactly one of ``value`` and ``error`` is meaningful, depending on
    ``status``.
    """

    def __init__(
        self,
        status: str,
        value: Any = None,
        error: str | None = None,
    ):
        self.status = status
        self.value = value
        self.error = error

    @classmethod
    def create_success(cls, value: Any) -> "ToolResponse":
        """Create a success response carrying ``value``."""
        return cls(status=STATUS_SUCCESS, value=value)

    @classmethod
    def create_error(cls, message: str) -> "ToolResponse":
        """Create an error response carrying ``message``."""
        return cls(status=STATUS_ERROR, error=message)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolResponse":
        return cls(
            status=data.get("status", STATUS_ERROR),
            value=data.get("value"),
            error=data.get("error"),
        )

    def is_success(self) -> bool:
        return self.status == STATUS_SUCCESS

    def is_error(self) -> bool:
        return not self.is_success()

    def to_dict(self) -> dict[str, Any]:
        """Flat record form used for logging and transport."""
        return {"status": self.status, "value": self.value, "error": self.error}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def __str__(self) -> str:
        return str(self.to_dict())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status!r}, value={self.value!r}, error={self.error!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ToolResponse):
            return NotImplemented
        return self.to_dict() == other.to_dict()


class TaskResponse(ToolResponse):
    """Outcome of an agent's tool-augmented task run."""

    @property
    def text(self) -> str:
        """Text suitable for a transcript: the value or the error message."""
        if self.is_success():
            return "" if self.value is None else str(self.value)
        return self.error or ""
