from __future__ import annotations

import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables
load_dotenv()


def _split_origins(raw: str) -> List[str]:
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


class AppSettings(BaseModel):
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    jpeg_quality: int = 95
    host: str = "0.0.0.0"
    port: int = 8000
    debug_landmarks: bool = False

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value):
        if isinstance(value, str):
            return _split_origins(value)
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value):
        return str(value).strip().upper()

    @field_validator("jpeg_quality", mode="before")
    @classmethod
    def _clamp_quality(cls, value):
        return min(max(int(value), 1), 100)

    @classmethod
    def from_env(cls) -> "AppSettings":
        env = {
            "allowed_origins": os.getenv("MAKEUP_ALLOWED_ORIGINS"),
            "log_level": os.getenv("MAKEUP_LOG_LEVEL"),
            "jpeg_quality": os.getenv("MAKEUP_JPEG_QUALITY"),
            "host": os.getenv("MAKEUP_HOST"),
            "port": os.getenv("MAKEUP_PORT"),
            "debug_landmarks": os.getenv("MAKEUP_DEBUG_LANDMARKS"),
        }
        return cls(**{key: value for key, value in env.items() if value not in (None, "")})


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings.from_env()
