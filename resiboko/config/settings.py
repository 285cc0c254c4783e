"""
Configuration Management for ResiboKo

Every knob is read from the environment (or .env) through one
BaseSettings class per prefix: GEMINI_, STORAGE_, SYNC_, GOOGLE_SHEETS_
and the unprefixed app options.

DESIGN DECISION: Sub-settings are built lazily. The app must start with
only a Gemini key, so sync and Sheets classes are never instantiated
until something asks for them.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini multimodal model configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model to use (must accept image and audio input)"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class StorageSettings(BaseSettings):
    """Local record storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: str = Field(
        default=".resiboko",
        description="Directory holding the local storage file"
    )
    file_name: str = Field(
        default="storage.json",
        description="Name of the local key-value storage file"
    )
    records_key: str = Field(
        default="savedReceipts",
        description="Key under which the record list is stored"
    )

    @property
    def storage_path(self) -> Path:
        """Full path of the storage file."""
        return Path(self.data_dir) / self.file_name


class SyncSettings(BaseSettings):
    """Spreadsheet sync configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["apps_script", "google_sheets"] = Field(
        default="apps_script",
        description="Which sync backend to use"
    )
    apps_script_url: Optional[str] = Field(
        default=None,
        description="Web app URL of the Apps Script that receives the records"
    )
    verify_response: bool = Field(
        default=False,
        description="Fail the sync on a non-2xx response (off: fire-and-forget)"
    )
    timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Local request timeout; unset leaves it to the transport"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets direct sync configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )
    receipts_sheet_name: str = Field(
        default="Receipts",
        description="Name of the sheet the records are written to"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before syncing."
            )
        return v


class AppSettings(BaseSettings):
    """
    Unprefixed options: currency symbol, upload limits, accepted
    formats and the current-year rule.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    currency_symbol: str = Field(
        default="₱",
        description="Symbol used when formatting amounts"
    )
    restrict_to_current_year: bool = Field(
        default=True,
        description="Reject extracted receipts dated outside the current year"
    )

    # Upload limits
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum upload file size in MB"
    )
    supported_image_formats: str = Field(
        default="jpg,jpeg,png,webp",
        description="Comma-separated list of supported image formats"
    )
    supported_audio_formats: str = Field(
        default="wav,mp3,m4a,ogg,webm",
        description="Comma-separated list of supported audio formats"
    )

    @property
    def supported_image_formats_list(self) -> list[str]:
        """Get supported image formats as a list."""
        return [fmt.strip().lower() for fmt in self.supported_image_formats.split(",")]

    @property
    def supported_audio_formats_list(self) -> list[str]:
        """Get supported audio formats as a list."""
        return [fmt.strip().lower() for fmt in self.supported_audio_formats.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Each concern is exposed as a property and built on access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def sync(self) -> SyncSettings:
        return SyncSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Return the process-wide Settings.

    Tests that change the environment should call
    get_settings.cache_clear() first.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Try to load every settings group.

    Returns {group: loaded_ok} plus "{group}_error" messages for
    the ones that failed. Shown on the Settings page.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.gemini
        results["gemini"] = True
    except Exception as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)

    try:
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        sync = settings.sync
        if sync.backend == "google_sheets":
            _ = settings.google_sheets
        elif not sync.apps_script_url:
            raise ValueError("SYNC_APPS_SCRIPT_URL is not set")
        results["sync"] = True
    except Exception as e:
        results["sync"] = False
        results["sync_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
