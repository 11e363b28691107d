from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MiB = 1024 * 1024


class AppSettings(BaseSettings):
    name: str = "doc-vault"
    version: str = "0.1.0"

    model_config = SettingsConfigDict(
        env_prefix="APP_",  # APP_NAME, APP_VERSION
        extra="ignore",
    )


class StorageSettings(BaseSettings):
    """Where documents live and the limits applied to uploads and listings."""

    storage_dir: Path = Path("data")
    max_file_size: int = Field(100 * MiB, gt=0)
    max_files_per_batch: int = Field(50, gt=0)
    default_page_size: int = Field(10, gt=0)
    max_page_size: int = Field(100, gt=0)
    chunk_size: int = Field(1 * MiB, gt=0)

    # write-visibility polling after a blob was drained
    verify_attempts: int = Field(10, ge=1)
    verify_delay: float = Field(0.1, ge=0)
    verify_backoff: float = Field(1.5, ge=1)

    cors_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_prefix="DOCVAULT_",  # DOCVAULT_STORAGE_DIR, DOCVAULT_MAX_FILE_SIZE, ...
        extra="ignore",
    )

    @property
    def upload_dir(self) -> Path:
        return self.storage_dir / "uploads"

    @property
    def metadata_file(self) -> Path:
        return self.storage_dir / "metadata.json"


@lru_cache
def get_app_settings(**kwargs) -> AppSettings:
    filtered_kwargs = {k: v for k, v in kwargs.items() if v is not None}
    return AppSettings(**filtered_kwargs)


@lru_cache
def get_storage_settings() -> StorageSettings:
    return StorageSettings()
