"""Application configuration using pydantic-settings."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Resume Builder"
    debug: bool = False
    log_level: str = "INFO"

    # Storage - a single key-value slot holds the whole document
    storage_backend: Literal["sqlite", "memory"] = "sqlite"
    database_url: str = "sqlite+aiosqlite:///./resume.db"
    storage_key: str = "resume"

    # Debounce intervals (trailing edge)
    autosave_debounce_ms: int = 1000
    preview_debounce_ms: int = 1000

    # Preview
    preview_min_width: int = 200
    preview_max_width: int = 450
    preview_backend: Literal["text", "typst"] = "text"

    # Typst
    typst_binary: str = "typst"
    render_timeout: float = 5.0

    # CORS
    frontend_cors_origin: str = "http://localhost:3000"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RESUME_",
        case_sensitive=False,
    )

    @property
    def autosave_delay(self) -> float:
        """Autosave quiet interval in seconds."""
        return self.autosave_debounce_ms / 1000

    @property
    def preview_delay(self) -> float:
        """Preview quiet interval in seconds."""
        return self.preview_debounce_ms / 1000


# Global settings instance
settings = Settings()
