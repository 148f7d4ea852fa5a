from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default) == "1"


@dataclass(frozen=True)
class Settings:
    """Runtime settings, read from the environment."""

    genai_disabled: bool = False
    genai_api_key: str | None = None
    genai_model: str = "gemini-2.5-flash-image"
    local_transform_size: int = 512
    display_dir: Path = Path(".local_storage/display")
    jpeg_quality: int = 95
    session_idle_ttl: float = 3600.0
    log_level: str = "INFO"
    env: str = "development"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            genai_disabled=_flag("GENAI_DISABLED"),
            genai_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
            genai_model=os.getenv("GENAI_MODEL", "gemini-2.5-flash-image"),
            local_transform_size=int(os.getenv("LOCAL_TRANSFORM_SIZE", "512")),
            display_dir=Path(os.getenv("DISPLAY_STORAGE_LOCAL_DIR", ".local_storage/display")),
            jpeg_quality=int(os.getenv("EXPORT_JPEG_QUALITY", "95")),
            session_idle_ttl=float(os.getenv("SESSION_IDLE_TTL", "3600")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            env=os.getenv("ENV", "development"),
        )
