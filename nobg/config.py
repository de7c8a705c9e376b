from __future__ import annotations

import os

from nobg.domain.errors import ConfigError


class Settings:
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
    gemini_model: str = os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image-preview")

    max_image_bytes: int = int(os.getenv("MAX_IMAGE_BYTES", str(12 * 1024 * 1024)))
    max_result_pixels: int = int(os.getenv("MAX_RESULT_PIXELS", str(40_000_000)))
    rate_limit_per_minute: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "30"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def require_api_key(self) -> str:
        if not self.gemini_api_key:
            raise ConfigError("GEMINI_API_KEY (or API_KEY) environment variable is not set.")
        return self.gemini_api_key


settings = Settings()
