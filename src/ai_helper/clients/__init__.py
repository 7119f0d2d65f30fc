"""LLM client implementations.

All clients implement the BaseLLMClient interface and normalize
provider-specific responses to unified types. Provider modules are imported
lazily by the factory so that only the selected SDK has to be importable.
"""

from .base import BaseLLMClient, with_retry
from .factory import (
    create_client,
    create_client_from_settings,
    get_available_providers,
    get_default_model,
)

__all__ = [
    "BaseLLMClient",
    "with_retry",
    "create_client",
    "create_client_from_settings",
    "get_available_providers",
    "get_default_model",
]
