from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Config:
    base_url: str
    token: str
    request_timeout_s: float
    max_retries: int
    backoff_base_s: float
    page_size: int
    settings_path: Path


def load_config() -> Config:
    return Config(
        base_url=os.getenv("EVALBROWSE_BASE_URL", "http://127.0.0.1:4646/v1"),
        token=os.getenv("EVALBROWSE_TOKEN", ""),
        request_timeout_s=float(os.getenv("EVALBROWSE_TIMEOUT_S", "20")),
        max_retries=int(os.getenv("EVALBROWSE_MAX_RETRIES", "3")),
        backoff_base_s=float(os.getenv("EVALBROWSE_BACKOFF_BASE_S", "0.5")),
        page_size=int(os.getenv("EVALBROWSE_PAGE_SIZE", "25")),
        settings_path=Path(os.getenv("EVALBROWSE_SETTINGS_PATH", "state/settings.json")),
    )
