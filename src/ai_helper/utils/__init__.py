"""Small shared helpers."""

from .text import extract_json, snake_case

__all__ = ["extract_json", "snake_case"]
