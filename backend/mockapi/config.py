"""
Application configuration loaded from CLI flags, environment variables and config files.
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

DEFAULT_CONFIG_FILE = "mock.config.json"


class Settings(BaseSettings):
    """Mock server settings.

    Priority: init kwargs > MOCK_* environment > .env > mock.config.json
    """

    model_config = SettingsConfigDict(
        env_prefix="MOCK_",
        env_file=".env",
        json_file=DEFAULT_CONFIG_FILE,
        extra="ignore",
    )

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    delay: int = 0
    prefix: str = "/api"

    # Storage
    db_model_path: str = ""
    db_storage_path: str = ""
    strict_fields: bool = False

    # JWT Configuration
    auth_enabled: bool = False
    jwt_secret_key: str = "CHANGE_ME_IN_PRODUCTION_USE_STRONG_SECRET"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: Optional[int] = None

    # Logging
    log_level: str = "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonConfigSettingsSource(settings_cls),
        )


def load_settings(config_file: Optional[str] = None, **overrides) -> Settings:
    """
    Build settings from an explicit config file plus overrides.

    Args:
        config_file: JSON config path replacing the default mock.config.json
        **overrides: Values that win over every other source (None values are dropped)

    Returns:
        Settings instance
    """
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if config_file is None:
        return Settings(**overrides)

    class FileSettings(Settings):
        model_config = SettingsConfigDict(json_file=config_file)

    return FileSettings(**overrides)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
