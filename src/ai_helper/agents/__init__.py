"""Agents the leader can delegate to.

Agent classes are loaded by the registry on first use; importing this
package does not import them.
"""

from .base import BaseAgent

__all__ = ["BaseAgent"]
