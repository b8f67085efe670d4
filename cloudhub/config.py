import os
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

_CONFIG_PATH = os.getenv("CLOUDHUB_CONFIG", "config.toml")
_ENV_PATH = os.getenv("CLOUDHUB_ENV", ".env")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CLOUDHUB_",
        env_nested_delimiter="__",
        toml_file=_CONFIG_PATH,
        env_file=_ENV_PATH,
        extra="ignore",
    )

    api_base_url: str = "http://localhost:8080/api"
    request_timeout_seconds: float = 30.0

    auto_select_first_account: bool = True

    notification_duration_seconds: float = 4.0
    progress_auto_dismiss_seconds: float = 1.5
    ticket_display_seconds: float = 5.0

    logs_dir: Optional[Path] = Field(default=None)
    log_level: str = "INFO"

    @property
    def backend_root(self) -> str:
        """API base URL without the trailing ``/api`` segment.

        OAuth endpoints live under ``/oauth2/*`` on the backend root, not
        under the API prefix.
        """
        root = self.api_base_url.rstrip("/")
        if root.endswith("/api"):
            root = root[: -len("/api")]
        return root

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Source order: init args > OS env > .env > config.toml > secrets
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


settings = Settings()
