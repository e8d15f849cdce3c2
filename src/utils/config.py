from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=ROOT_DIR / ".env")

DEFAULT_API_ENDPOINT = "https://qkart2-frontend.onrender.com/api/v1"


def _get_env(*keys: str, default: Optional[str] = None) -> Optional[str]:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int) -> int:
    v = _get_env(*keys)
    if v is None:
        return default
    return int(v)


def _get_float(*keys: str, default: Optional[float] = None) -> Optional[float]:
    v = _get_env(*keys)
    if v is None:
        return default
    return float(v)


@dataclass(frozen=True)
class Settings:
    api_endpoint: str = DEFAULT_API_ENDPOINT
    db_path: str = "data/storefront.sqlite"
    search_debounce_ms: int = 500
    shipping_charge: Decimal = Decimal("0")
    http_timeout: Optional[float] = None  # None -> httpx default

    @property
    def search_debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000


def load_settings() -> Settings:
    return Settings(
        api_endpoint=_get_env(
            "STOREFRONT_API_ENDPOINT", default=DEFAULT_API_ENDPOINT
        ).rstrip("/"),
        db_path=_get_env("STOREFRONT_DB_PATH", default="data/storefront.sqlite"),
        search_debounce_ms=_get_int("SEARCH_DEBOUNCE_MS", default=500),
        shipping_charge=Decimal(_get_env("SHIPPING_CHARGE", default="0")),
        http_timeout=_get_float("HTTP_TIMEOUT"),
    )
