"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]
DEFAULT_LOCAL_DATA_DIR = BASE_DIR / "data"
DEFAULT_VERCEL_DATA_DIR = Path("/tmp/rubriq")


TRUTHY_VALUES = {"1", "true", "yes", "on"}


def _is_truthy(value: str | None) -> bool:
    return bool(value and value.strip().lower() in TRUTHY_VALUES)


def _running_on_vercel() -> bool:
    return bool(os.getenv("VERCEL") or os.getenv("VERCEL_ENV") or _is_truthy(os.getenv("RUBRIQ_VERCEL_ENVIRONMENT")))


def _default_data_dir() -> str:
    if _running_on_vercel():
        return str(DEFAULT_VERCEL_DATA_DIR)
    return str(DEFAULT_LOCAL_DATA_DIR)


class Settings(BaseSettings):
    """Runtime configuration for the Rubriq backend."""

    model_config = SettingsConfigDict(env_prefix="RUBRIQ_", extra="ignore")

    app_name: str = "Simple Rubriq API"
    data_dir: str = Field(
        default_factory=_default_data_dir,
        validation_alias=AliasChoices("RUBRIQ_DATA_DIR", "DATA_DIR"),
    )
    sqlite_path: str | None = Field(
        default=None,
        validation_alias=AliasChoices("RUBRIQ_SQLITE_PATH", "SQLITE_PATH"),
    )
    max_upload_mb: int = 10

    # Essay limits
    essay_min_words: int = 10
    essay_max_words: int = 10_000

    # AI completion service
    openai_model: str = Field(
        default="gpt-4o-mini",
        validation_alias=AliasChoices("RUBRIQ_OPENAI_MODEL", "OPENAI_MODEL"),
    )
    openai_fallback_model: str = "gpt-4o"
    openai_timeout_seconds: float = 60.0

    # File ingestion
    ocr_provider: str = "tesseract"

    # Deployment toggles
    vercel_environment: bool = False

    # CORS configuration
    cors_allow_origins: str = Field(
        default="*",
        validation_alias=AliasChoices("RUBRIQ_CORS_ALLOW_ORIGINS", "CORS_ALLOW_ORIGINS"),
    )

    @field_validator("ocr_provider")
    @classmethod
    def _normalise_ocr_provider(cls, value: str) -> str:
        return value.strip().lower()

    @model_validator(mode="after")
    def _derive_and_check(self) -> "Settings":
        if not self.sqlite_path:
            self.sqlite_path = str(Path(self.data_dir) / "rubriq.db")
        if self.essay_min_words < 1 or self.essay_min_words > self.essay_max_words:
            raise ValueError("essay_min_words must be between 1 and essay_max_words")
        return self

    @property
    def sqlite_url(self) -> str:
        return f"sqlite:///{self.sqlite_path}"

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def cors_origin_list(self) -> list[str]:
        if self.cors_allow_origins.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]


settings = Settings()
