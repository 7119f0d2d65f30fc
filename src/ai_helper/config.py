"""centralized configuration management using pydantic settings.

this module provides type-safe, validated configuration for the agent runtime.
configuration is loaded from environment variables and optional .env files.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """main settings class for the agent runtime.

    configuration is loaded from environment variables. a .env file in the
    working directory is also loaded if present.

    attributes:
        openai_api_key: api key for openai
        anthropic_api_key: api key for anthropic (claude)
        google_api_key: api key for google (gemini)
        azure_openai_api_key: api key for an azure openai deployment
        azure_openai_endpoint: endpoint url of the azure openai resource
        openai_compatible_base_url: base url of any openai-compatible server
        llm_provider: explicit provider selection (auto-detected if not set)
        llm_model: model to use (provider default if not set)
        llm_temperature: sampling temperature passed to every chat session
        language: language the agents answer in
        mcp_config_path: json file declaring mcp servers to expose as agents
        file_agent_roots: directories the file agent may read
        max_tool_rounds: upper bound of tool-call round trips per question
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore extra env vars
        populate_by_name=True,
    )

    # api keys for llm providers
    openai_api_key: str | None = None
    openai_organization: str | None = None
    anthropic_api_key: str | None = None
    google_api_key: str | None = None
    gemini_api_key: str | None = None  # alias for google
    azure_openai_api_key: str | None = None
    azure_openai_endpoint: str | None = None
    azure_openai_api_version: str = "2024-10-21"
    openai_compatible_api_key: str | None = None
    openai_compatible_base_url: str | None = None

    # llm configuration
    llm_provider: str | None = Field(default=None, alias="LLM_PROVIDER")
    llm_model: str | None = Field(default=None, alias="LLM_MODEL")
    llm_temperature: float | None = Field(default=None, alias="LLM_TEMPERATURE", ge=0.0, le=2.0)
    llm_max_tokens: int | None = Field(default=None, alias="LLM_MAX_TOKENS", gt=0)

    # runtime configuration
    language: str = Field(default="English", alias="AI_HELPER_LANGUAGE")
    log_level: str = Field(default="WARNING", alias="AI_HELPER_LOG_LEVEL")
    log_file: str | None = Field(default=None, alias="AI_HELPER_LOG_FILE")
    mcp_config_path: str | None = Field(default=None, alias="AI_HELPER_MCP_CONFIG")
    file_agent_roots: list[str] = Field(default_factory=lambda: ["."])
    max_tool_rounds: int = Field(default=10, ge=1)

    def get_google_api_key(self) -> str | None:
        """get google api key, checking both GOOGLE_API_KEY and GEMINI_API_KEY."""
        return self.google_api_key or self.gemini_api_key

    def detect_provider(self) -> str | None:
        """auto-detect provider based on available api keys.

        returns:
            provider name or None if no keys are set
        """
        if self.llm_provider:
            return self.llm_provider

        if self.openai_api_key:
            return "openai"
        if self.anthropic_api_key:
            return "anthropic"
        if self.get_google_api_key():
            return "gemini"
        if self.azure_openai_api_key and self.azure_openai_endpoint:
            return "azure_openai"
        if self.openai_compatible_base_url:
            return "openai_compatible"

        return None

    def get_api_key_for_provider(self, provider: str) -> str | None:
        """get the api key for a specific provider.

        args:
            provider: provider name (openai, anthropic, gemini, azure_openai, openai_compatible)

        returns:
            api key or None if not set
        """
        key_map = {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "gemini": self.get_google_api_key(),
            "azure_openai": self.azure_openai_api_key,
            "openai_compatible": self.openai_compatible_api_key,
        }
        return key_map.get(provider)

    def client_config(self) -> dict:
        """generation parameters shared by every client."""
        config: dict = {}
        if self.llm_temperature is not None:
            config["temperature"] = self.llm_temperature
        if self.llm_max_tokens is not None:
            config["max_tokens"] = self.llm_max_tokens
        return config


@lru_cache
def get_settings() -> Settings:
    """get the singleton settings instance.

    uses lru_cache to ensure only one instance is created.
    call get_settings.cache_clear() to reload settings if needed.

    returns:
        the settings instance
    """
    return Settings()
