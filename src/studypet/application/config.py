from pathlib import Path
from typing import Any

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from studypet.domain.constants import CARDS_PER_DECK, DECK_TEMPERATURE, REQUEST_TIMEOUT


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/studypet/config.toml",
        Path.home() / ".studypet.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for studypet.
    Supports loading from:
    1. Environment variables (STUDYPET_*)
    2. Config file (~/.config/studypet/config.toml)
    3. Manual overrides (CLI / API)
    """

    model_config = SettingsConfigDict(
        env_prefix="STUDYPET_",
        extra="ignore",
    )

    # Storage
    backend: str = "sqlite"  # sqlite, memory
    db_path: Path = Field(default_factory=lambda: Path.home() / ".config/studypet/studypet.db")

    # Content generation (any OpenAI-compatible chat completions endpoint)
    api_key: SecretStr | None = None
    api_url: str = "https://api.x.ai/v1"
    model: str = "grok-beta"
    temperature: float = DECK_TEMPERATURE
    request_timeout: float = REQUEST_TIMEOUT
    cards_per_deck: int = CARDS_PER_DECK

    # Learning
    proficiency_ease_boost: bool = True

    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        toml_file = next((f for f in config_files() if f.exists()), None)

        # Overrides win over env vars, which win over the config file
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("db_path", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        return Path(v).expanduser()


def resolve_config(overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/studypet/config.toml (if exists)
    3. Environment variables (STUDYPET_*)
    4. overrides (passed from Typer or the API); None values are ignored
    """
    cleaned = {k: v for k, v in (overrides or {}).items() if v is not None}
    return AppConfig(**cleaned)
