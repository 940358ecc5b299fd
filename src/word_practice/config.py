"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


# settings.yaml section -> {yaml key: Settings field}
_YAML_FIELDS: dict[str, dict[str, str]] = {
    "server": {
        "host": "host",
        "port": "port",
        "environment": "environment",
        "allowed_origins": "allowed_origins",
    },
    "storage": {"data_dir": "data_dir"},
    "practice": {
        "mastery_threshold": "default_mastery_threshold",
        "timer_seconds": "default_timer_seconds",
        "demote_on_miss": "default_demote_on_miss",
        "tick_seconds": "tick_seconds",
        "correct_feedback_delay": "correct_feedback_delay",
        "incorrect_feedback_delay": "incorrect_feedback_delay",
        "requeue_offset": "requeue_offset",
    },
    "speech": {
        "recognition_enabled": "speech_recognition_enabled",
        "listener_restart_delay": "listener_restart_delay",
        "rate": "speech_rate",
    },
}


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        for section, fields in _YAML_FIELDS.items():
            values = data.get(section) or {}
            for yaml_key, field_name in fields.items():
                flattened[field_name] = values.get(yaml_key)

        # Remove None values
        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Authentication (optional: None disables auth)
    app_secret: str | None = Field(default=None)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    environment: str = Field(default="development")
    allowed_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:8000", "http://127.0.0.1:8000"]
    )

    # Practice defaults for new learners
    default_mastery_threshold: int = Field(default=4, ge=1)
    default_timer_seconds: int = Field(default=7, ge=1)
    default_demote_on_miss: bool = Field(default=True)

    # Session pacing
    tick_seconds: float = Field(default=1.0, gt=0)
    correct_feedback_delay: float = Field(default=0.8, ge=0)
    incorrect_feedback_delay: float = Field(default=1.5, ge=0)
    requeue_offset: int = Field(default=3, ge=1)

    # Speech collaborators
    speech_recognition_enabled: bool = Field(default=True)
    listener_restart_delay: float = Field(default=0.25, ge=0)
    speech_rate: float = Field(default=0.9)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)
    data_dir: Path | None = Field(default=None)

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def split_origins(cls, value: Any) -> Any:
        """Accept a comma-separated string, as set in ALLOWED_ORIGINS."""
        if isinstance(value, str):
            return [o.strip() for o in value.split(",") if o.strip()]
        return value

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def resolved_data_dir(self) -> Path:
        d = self.data_dir or self.project_root / "data"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def learners_dir(self) -> Path:
        d = self.resolved_data_dir / "learners"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def frontend_dir(self) -> Path:
        return self.project_root / "frontend"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()
