from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mindcolony.domain.constants import DEFAULT_CLUE_DISPLAY_LIMIT, STORAGE_KEY


def config_dir() -> Path:
    return Path.home() / ".config/mindcolony"


class AppConfig(BaseSettings):
    """
    Configuration model for mindcolony.
    Supports loading from:
    1. Environment variables (MINDCOLONY_*)
    2. Config file (~/.config/mindcolony/config.toml)
    3. Manual overrides (CLI / HTTP)
    """

    model_config = SettingsConfigDict(
        env_prefix="MINDCOLONY_",
        extra="ignore",
    )

    # Storage
    backend: Literal["json", "memory"] = "json"
    data_path: Path = Field(default_factory=lambda: config_dir() / "store.json")
    storage_key: str = STORAGE_KEY
    seed_samples: bool = True

    # Logging
    log_dir: Path = Field(default_factory=lambda: config_dir() / "logs")
    verbose: int = 1

    # Study
    clue_display_limit: int = Field(default=DEFAULT_CLUE_DISPLAY_LIMIT, ge=0)
    random_seed: int | None = None
    timezone: str | None = None  # IANA name; None uses the system zone

    # Server
    host: str = "127.0.0.1"
    port: int = 8788

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

        toml_file = config_dir() / "config.toml"
        # Later sources in the tuple lose: init (overrides) beat env beat file
        if toml_file.exists():
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("data_path", "log_dir", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        return Path(v).expanduser()

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str | None) -> str | None:
        if v:
            try:
                ZoneInfo(v)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"Unknown timezone: {v}") from e
        return v


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/mindcolony/config.toml (if exists)
    3. Environment variables (MINDCOLONY_*)
    4. cli_overrides (passed from Typer or the HTTP layer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
