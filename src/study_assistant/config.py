# application settings loaded from environment variables and .env
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# human readable names used when instructing the model which language to answer in
LANGUAGE_NAMES = {
    "tr": "Turkish",
    "en": "English",
    "de": "German",
    "fr": "French",
    "es": "Spanish",
}


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # ========== AI service ==========
    gemini_api_key: str = ""
    gemini_model: str = "gemini-3-flash-preview"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    # None means no timeout: a hanging call keeps its file in "analyzing"
    request_timeout: Optional[float] = None

    # ========== Content ==========
    target_language: str = "tr"

    # ========== Storage & uploads ==========
    data_dir: Path = Path(".study_assistant")
    max_upload_size_mb: int = 10

    # ========== Logging ==========
    log_level: str = "INFO"

    @property
    def language_name(self) -> str:
        return LANGUAGE_NAMES.get(self.target_language, self.target_language)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


# one settings object per process
@lru_cache()
def get_settings() -> Settings:
    """Get the process-wide settings instance"""
    return Settings()
