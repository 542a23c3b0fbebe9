import os
from pathlib import Path

# Basic settings helper to read environment configuration.

BACKEND_ROOT = Path(__file__).resolve().parent


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_list(val: str | None, default: str) -> list[str]:
    raw = default if val is None else val
    return [part.strip() for part in raw.split(",") if part.strip()]


class Settings:
    def __init__(self) -> None:
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{BACKEND_ROOT / 'app.db'}")
        self.MAX_OUTPUT_WIDTH: int = int(os.getenv("MAX_OUTPUT_WIDTH", "800"))
        self.DEFAULT_FONT_FAMILY: str = os.getenv("DEFAULT_FONT_FAMILY", "Inter")
        self.FONT_WEIGHT: int = int(os.getenv("FONT_WEIGHT", "700"))
        self.FONT_CACHE_MAX_ENTRIES: int = int(os.getenv("FONT_CACHE_MAX_ENTRIES", "64"))
        self.GOOGLE_FONTS_CSS_URL: str = os.getenv("GOOGLE_FONTS_CSS_URL", "https://fonts.googleapis.com/css2")
        self.FONT_FETCH_TIMEOUT_SECONDS: float = float(os.getenv("FONT_FETCH_TIMEOUT_SECONDS", "10"))
        self.IMAGE_FETCH_TIMEOUT_SECONDS: float = float(os.getenv("IMAGE_FETCH_TIMEOUT_SECONDS", "15"))
        self.JPEG_QUALITY: int = int(os.getenv("JPEG_QUALITY", "80"))
        self.PREVIEW_QUERY_MARKERS: list[str] = _as_list(os.getenv("PREVIEW_QUERY_MARKERS"), "_t,v")
        self.RENDER_ANALYTICS_ENABLED: bool = _as_bool(os.getenv("RENDER_ANALYTICS_ENABLED"), True)
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
