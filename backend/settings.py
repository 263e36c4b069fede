import os
from pathlib import Path
from typing import Optional

# Basic settings helper to read environment configuration.

BACKEND_ROOT = Path(__file__).resolve().parent


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_float(val: str | None, default: float) -> float:
    if val is None or not val.strip():
        return default
    return float(val)


def _as_int(val: str | None, default: Optional[int]) -> Optional[int]:
    if val is None or not val.strip():
        return default
    return int(val)


class Settings:
    def __init__(self) -> None:
        self.GOOGLE_MAPS_API_KEY: Optional[str] = os.getenv("GOOGLE_MAPS_API_KEY") or None
        self.NOMINATIM_USER_AGENT: Optional[str] = os.getenv("NOMINATIM_USER_AGENT") or None
        self.UPSTREAM_TIMEOUT_SECONDS: float = _as_float(os.getenv("UPSTREAM_TIMEOUT_SECONDS"), 5.0)
        self.ENRICHMENT_TIMEOUT_SECONDS: float = _as_float(os.getenv("ENRICHMENT_TIMEOUT_SECONDS"), 10.0)
        self.ENRICHMENT_MAX_WORKERS: int = _as_int(os.getenv("ENRICHMENT_MAX_WORKERS"), 8) or 8
        self.NEIGHBOR_ENRICHMENT_POLICY: str = (
            os.getenv("NEIGHBOR_ENRICHMENT_POLICY") or "all_or_nothing"
        ).lower()
        self.NEIGHBOR_MIN_POPULATION: Optional[int] = _as_int(os.getenv("NEIGHBOR_MIN_POPULATION"), None)
        self.REVERSE_LOOKUP_ENABLED: bool = _as_bool(os.getenv("REVERSE_LOOKUP_ENABLED"), False)
        self.PUBLIC_DIR: Path = Path(os.getenv("PUBLIC_DIR") or BACKEND_ROOT / "public")
        self.PORT: int = _as_int(os.getenv("PORT"), 3000) or 3000
        self.LOG_LEVEL: str = (os.getenv("LOG_LEVEL") or "INFO").upper()


settings = Settings()
