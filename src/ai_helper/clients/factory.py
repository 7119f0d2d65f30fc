"""Factory for creating LLM clients.

This module provides a centralized way to create LLM clients based on provider
name, using a registry pattern that makes it easy to add new providers.
"""

import importlib
from typing import Any

from ..config import Settings
from .base import BaseLLMClient

# registry of provider configurations
_PROVIDER_REGISTRY: dict[str, dict[str, Any]] = {
    "openai": {
        "class_path": "ai_helper.clients.openai.OpenAIClient",
        "api_key_env": "OPENAI_API_KEY",
        "default_model": "gpt-4o",
    },
    "anthropic": {
        "class_path": "ai_helper.clients.anthropic.AnthropicClient",
        "api_key_env": "ANTHROPIC_API_KEY",
        "default_model": "claude-sonnet-4-5",
    },
    "gemini": {
        "class_path": "ai_helper.clients.google.GoogleClient",
        "api_key_env": "GOOGLE_API_KEY",
        "default_model": "gemini-2.0-flash",
    },
    "azure_openai": {
        "class_path": "ai_helper.clients.openai.AzureOpenAIClient",
        "api_key_env": "AZURE_OPENAI_API_KEY",
        "default_model": "gpt-4o",
    },
    "openai_compatible": {
        "class_path": "ai_helper.clients.openai.OpenAICompatibleEndpointClient",
        "api_key_env": None,
        "default_model": "default",
    },
}

_ALIASES = {"google": "gemini", "azure": "azure_openai"}


def normalize_provider(provider: str) -> str:
    """Map provider aliases (``google``, ``azure``) to registry names."""
    name = provider.strip().lower()
    return _ALIASES.get(name, name)


def get_available_providers() -> list[str]:
    """Get list of available provider names."""
    return list(_PROVIDER_REGISTRY.keys())


def get_default_model(provider: str) -> str:
    """Get the default model for a provider.

    Raises:
        ValueError: If provider is unknown.
    """
    return _get_provider_config(provider)["default_model"]


def _get_provider_config(provider: str) -> dict[str, Any]:
    name = normalize_provider(provider)
    if name not in _PROVIDER_REGISTRY:
        raise ValueError(f"Unknown provider: {provider}. Available: {get_available_providers()}")
    return _PROVIDER_REGISTRY[name]


def create_client(
    provider: str,
    model: str | None = None,
    client_config: dict | None = None,
    settings: Settings | None = None,
    api_key: str | None = None,
) -> BaseLLMClient:
    """Create an LLM client for the specified provider.

    Args:
        provider: The provider name (openai, anthropic, gemini, azure_openai,
            openai_compatible).
        model: Optional model override. If not provided, uses provider default.
        client_config: Optional configuration dict for the client.
        settings: Settings supplying api keys and endpoints.
        api_key: Optional API key overriding the one from settings.

    Returns:
        An initialized LLM client instance.

    Raises:
        ValueError: If provider is unknown or API key is not available.
    """
    name = normalize_provider(provider)
    config = _get_provider_config(name)
    settings = settings or Settings()

    resolved_key = api_key or settings.get_api_key_for_provider(name)
    if config["api_key_env"] and not resolved_key:
        raise ValueError(f"{config['api_key_env']} not set in environment")

    kwargs: dict[str, Any] = {
        "api_key": resolved_key,
        "model": model or config["default_model"],
        "client_config": client_config,
    }
    if name == "openai" and settings.openai_organization:
        kwargs["organization"] = settings.openai_organization
    elif name == "azure_openai":
        kwargs["endpoint"] = settings.azure_openai_endpoint
        kwargs["api_version"] = settings.azure_openai_api_version
    elif name == "openai_compatible":
        kwargs["base_url"] = settings.openai_compatible_base_url

    client_class = _import_client_class(config["class_path"])
    return client_class(**kwargs)


def create_client_from_settings(settings: Settings) -> BaseLLMClient:
    """Create the client selected by settings (explicit or auto-detected provider).

    Raises:
        ValueError: If no provider is configured.
    """
    provider = settings.detect_provider()
    if not provider:
        raise ValueError(
            "No LLM provider configured. Set LLM_PROVIDER or one of "
            "OPENAI_API_KEY, ANTHROPIC_API_KEY, GOOGLE_API_KEY, AZURE_OPENAI_API_KEY, "
            "OPENAI_COMPATIBLE_BASE_URL."
        )
    return create_client(
        provider,
        model=settings.llm_model,
        client_config=settings.client_config(),
        settings=settings,
    )


def _import_client_class(class_path: str) -> type[BaseLLMClient]:
    """Dynamically import a client class from its dotted path.

    Provider SDKs are only imported when their client is requested.
    """
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
