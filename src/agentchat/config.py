"""Configuration management using Pydantic Settings.

Loads configuration from multiple sources with the following priority (highest first):
0. Keyword arguments passed to Settings
1. Environment variables (AGENTCHAT_* prefix, plus OPENAI_API_KEY, OPENAI_API_BASE_URL,
   SERPAPI_KEY and PORT)
2. .env file
3. config.local.yaml (if exists)
4. config.yaml
5. Default values

Credentials are read once here but only enforced at first use.
"""

from contextvars import ContextVar
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


class CorsSettings(BaseModel):
    """CORS configuration."""

    allowed_origins: list[str] = ["*"]
    allowed_methods: list[str] = ["GET", "POST", "OPTIONS"]
    allowed_headers: list[str] = ["Content-Type", "X-Request-ID"]


class ServerSettings(BaseModel):
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 3000
    timeout_seconds: int = 300
    cors: CorsSettings = Field(default_factory=CorsSettings)


class OpenAISettings(BaseModel):
    """Generation backend configuration."""

    api_key: str = ""
    base_url: str = "https://api.openai.com/v1"
    default_model: str = "gpt-4o"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    timeout_seconds: int = 60


class SearchSettings(BaseModel):
    """SerpAPI web search configuration."""

    api_key: str = ""
    base_url: str = "https://serpapi.com/search"
    engine: str = "google"
    num_results: int = Field(default=5, ge=1, le=20)
    timeout_seconds: float = 15.0


class AgentSettings(BaseModel):
    """Orchestration limits and event policies."""

    system_prompt: str | None = None
    max_tool_rounds: int = Field(default=5, ge=1)
    max_response_chars: int = Field(default=100_000, ge=1)
    tool_timeout_seconds: float = 20.0
    # Stream first-turn text as reasoning deltas instead of buffering it
    stream_reasoning: bool = False
    # Reasoning shown when the model calls a tool without any preceding text
    tool_intent_message: str | None = None


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


# Config directory for the Settings instance being built, read by its YAML sources
_config_dir: ContextVar[Path | None] = ContextVar("agentchat_config_dir", default=None)


class Settings(BaseSettings):
    """Application settings loaded from environment, .env, and config files."""

    model_config = SettingsConfigDict(
        env_prefix="AGENTCHAT_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # Direct environment variable mappings for common settings
    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_base_url: str | None = Field(default=None, validation_alias="OPENAI_API_BASE_URL")
    serpapi_key: str | None = Field(default=None, validation_alias="SERPAPI_KEY")
    port: int | None = Field(default=None, validation_alias="PORT")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Order sources: init, env, .env, config.local.yaml, config.yaml, secrets.

        Earlier sources win; nested sections are merged key by key.
        """
        sources: list[PydanticBaseSettingsSource] = [init_settings, env_settings, dotenv_settings]

        config_dir = _config_dir.get()
        if config_dir is not None:
            # Missing files are skipped
            for filename in ("config.local.yaml", "config.yaml"):
                sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=config_dir / filename))

        sources.append(file_secret_settings)
        return tuple(sources)

    def __init__(self, config_dir: Path | None = None, **data):
        """Initialize settings, reading YAML files from config_dir if provided.

        Keyword arguments take precedence over env, .env and YAML values.
        OPENAI_API_KEY, OPENAI_API_BASE_URL, SERPAPI_KEY and PORT, when set,
        are applied last and override the matching section field.
        """
        token = _config_dir.set(config_dir)
        try:
            super().__init__(**data)
        finally:
            _config_dir.reset(token)

        # Direct variables override the nested sections
        if self.openai_api_key:
            self.openai.api_key = self.openai_api_key

        if self.openai_base_url:
            self.openai.base_url = self.openai_base_url

        if self.serpapi_key:
            self.search.api_key = self.serpapi_key

        if self.port is not None:
            self.server.port = self.port

    def missing_credentials(self) -> list[str]:
        """List the credentials that are not configured.

        Missing credentials do not stop the server; the component needing one
        fails explicitly when it is first used.

        Returns:
            Environment variable names of absent credentials.
        """
        missing = []
        if not self.openai.api_key:
            missing.append("OPENAI_API_KEY")
        if not self.search.api_key:
            missing.append("SERPAPI_KEY")
        return missing


@lru_cache
def get_settings(config_dir: Path | None = None) -> Settings:
    """Get cached settings instance.

    Args:
        config_dir: Optional path to config directory. If None, the project's
                   ``config`` directory is used when it exists.

    Returns:
        Settings instance.
    """
    if config_dir is None:
        project_root = Path(__file__).parent.parent.parent
        default_config_dir = project_root / "config"
        if default_config_dir.exists():
            config_dir = default_config_dir

    return Settings(config_dir=config_dir)
