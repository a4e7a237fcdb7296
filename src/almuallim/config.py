"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path.cwd()


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from config/settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if "server" in data:
            flattened["host"] = data["server"].get("host")
            flattened["port"] = data["server"].get("port")
        if "openai" in data:
            flattened["tutor_model"] = data["openai"].get("tutor_model")
            flattened["recitation_model"] = data["openai"].get("recitation_model")
            flattened["tutor_temperature"] = data["openai"].get("tutor_temperature")
        if "storage" in data:
            flattened["data_dir"] = data["storage"].get("data_dir")
        if "admin" in data:
            flattened["admin_upload_delay_seconds"] = data["admin"].get("upload_delay_seconds")
        if "audio" in data:
            flattened["audio_sample_rate"] = data["audio"].get("sample_rate")
            flattened["audio_channels"] = data["audio"].get("channels")
            flattened["audio_chunk_duration_ms"] = data["audio"].get("chunk_duration_ms")

        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI (no key means every AI call falls back to its canned reply)
    openai_api_key: str | None = Field(default=None)
    tutor_model: str = Field(default="gpt-4o-mini")
    recitation_model: str = Field(default="gpt-4o-audio-preview")
    tutor_temperature: float = Field(default=0.7)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Storage
    data_dir: Path = Field(default=Path("data/state"))

    # Admin
    admin_upload_delay_seconds: float = Field(default=2.0)

    # Audio
    audio_sample_rate: int = Field(default=16000)
    audio_channels: int = Field(default=1)
    audio_chunk_duration_ms: int = Field(default=100)
    audio_input_device: int | None = Field(default=None)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)

    @property
    def state_dir(self) -> Path:
        """Directory holding the persisted "user" and "courses" values."""
        d = self.data_dir if self.data_dir.is_absolute() else self.project_root / self.data_dir
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def audio_chunk_size(self) -> int:
        """Number of samples per audio chunk."""
        return int(self.audio_sample_rate * self.audio_chunk_duration_ms / 1000)

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
