"""
Service configuration, read from the environment (and an optional .env file).
"""
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

SUMMARIZER_BACKENDS = ("placeholder", "gemini")


def _optional_int(name: str) -> Optional[int]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    value = _optional_int(name)
    return default if value is None else value


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    summarizer_backend: str = "placeholder"

    pdf_timeout_ms: int = 30000
    pdf_max_pages: Optional[int] = None

    upload_dir: str = "uploads"
    max_upload_bytes: int = 10 * 1024 * 1024

    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self) -> None:
        if self.pdf_timeout_ms <= 0:
            raise ValueError(f"PDF_TIMEOUT_MS must be positive, got {self.pdf_timeout_ms}")
        if self.pdf_max_pages is not None and self.pdf_max_pages <= 0:
            raise ValueError(f"PDF_MAX_PAGES must be positive, got {self.pdf_max_pages}")
        if self.max_upload_bytes <= 0:
            raise ValueError(f"MAX_UPLOAD_BYTES must be positive, got {self.max_upload_bytes}")

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.environ.get("CORS_ORIGINS", "*")
        return cls(
            gemini_api_key=os.environ.get("GEMINI_API_KEY", ""),
            gemini_model=os.environ.get("GEMINI_MODEL", cls.gemini_model),
            summarizer_backend=os.environ.get("SUMMARIZER_BACKEND", cls.summarizer_backend).strip().lower(),
            pdf_timeout_ms=_env_int("PDF_TIMEOUT_MS", cls.pdf_timeout_ms),
            pdf_max_pages=_optional_int("PDF_MAX_PAGES"),
            upload_dir=os.environ.get("UPLOAD_DIR", cls.upload_dir),
            max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", cls.max_upload_bytes),
            log_level=os.environ.get("LOG_LEVEL", cls.log_level).upper(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )


@lru_cache()
def get_settings() -> Settings:
    load_dotenv(override=False)
    return Settings.from_env()
