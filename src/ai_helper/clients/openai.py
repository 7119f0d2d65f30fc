"""OpenAI client implementations.

These clients handle communication with the OpenAI API, Azure OpenAI
deployments and self-hosted servers that speak the same protocol, and
normalize responses to the unified format.
"""

import os
from contextlib import contextmanager
from typing import Any

from openai import APIConnectionError, APITimeoutError, AzureOpenAI, InternalServerError, OpenAI
from openai import AuthenticationError as OpenAIAuthError
from openai import RateLimitError as OpenAIRateLimitError

from ..exceptions import (
    AuthenticationError,
    ProviderUnavailableError,
    RateLimitError,
)
from .openai_compat import OpenAICompatibleClient


def _retry_after(error: Exception) -> float | None:
    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None) or {}
    value = headers.get("retry-after")
    try:
        return float(value) if value else None
    except ValueError:
        return None


class OpenAIClient(OpenAICompatibleClient):
    """OpenAI API client with unified response handling."""

    provider_label = "OpenAI"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o",
        client_config: dict | None = None,
        organization: str | None = None,
        base_url: str | None = None,
    ):
        """Initialize the OpenAI client.

        Args:
            api_key: OpenAI API key. Defaults to OPENAI_API_KEY env var.
            model: Model to use. Defaults to gpt-4o.
            client_config: Optional dictionary of configuration parameters.
            organization: Optional organization id.
            base_url: Optional API base url.
        """
        super().__init__(
            api_key,
            model,
            client_config,
            organization=organization,
            base_url=base_url,
        )

    def _create_client(self, api_key: str | None, **client_kwargs: Any) -> OpenAI:
        kwargs = {k: v for k, v in client_kwargs.items() if v}
        return OpenAI(api_key=api_key or os.environ.get("OPENAI_API_KEY"), **kwargs)

    @contextmanager
    def _handle_api_errors(self):
        """Handle OpenAI-specific errors."""
        label = self.provider_label
        try:
            yield
        except OpenAIAuthError as e:
            raise AuthenticationError(f"{label} authentication failed: {e}") from e
        except OpenAIRateLimitError as e:
            raise RateLimitError(f"{label} rate limit exceeded", retry_after=_retry_after(e)) from e
        except (APIConnectionError, APITimeoutError, InternalServerError) as e:
            raise ProviderUnavailableError(f"{label} API unavailable: {e}") from e


class AzureOpenAIClient(OpenAIClient):
    """Client for an Azure OpenAI deployment.

    ``model`` is the deployment name.
    """

    provider_label = "Azure OpenAI"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o",
        client_config: dict | None = None,
        endpoint: str | None = None,
        api_version: str = "2024-10-21",
    ):
        OpenAICompatibleClient.__init__(
            self,
            api_key,
            model,
            client_config,
            endpoint=endpoint,
            api_version=api_version,
        )

    def _create_client(self, api_key: str | None, **client_kwargs: Any) -> AzureOpenAI:
        endpoint = client_kwargs.get("endpoint") or os.environ.get("AZURE_OPENAI_ENDPOINT")
        if not endpoint:
            raise ValueError("Azure OpenAI endpoint not set. Set AZURE_OPENAI_ENDPOINT.")
        return AzureOpenAI(
            api_key=api_key or os.environ.get("AZURE_OPENAI_API_KEY"),
            azure_endpoint=endpoint,
            api_version=client_kwargs.get("api_version"),
        )


class OpenAICompatibleEndpointClient(OpenAIClient):
    """Client for any server exposing the OpenAI chat-completions API.

    Local servers usually ignore the key, so a placeholder is sent when none
    is configured.
    """

    provider_label = "OpenAI-compatible endpoint"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "default",
        client_config: dict | None = None,
        base_url: str | None = None,
    ):
        base_url = base_url or os.environ.get("OPENAI_COMPATIBLE_BASE_URL")
        if not base_url:
            raise ValueError("OPENAI_COMPATIBLE_BASE_URL not set in environment")
        super().__init__(api_key or "not-needed", model, client_config, base_url=base_url)
