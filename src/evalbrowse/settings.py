from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class UserSettings:
    page_size: int


def load_settings(path: Path, default_page_size: int) -> UserSettings:
    """Load the stored page size, falling back to ``default_page_size``."""
    if not path.exists():
        return UserSettings(page_size=default_page_size)
    try:
        data = json.loads(path.read_text())
        page_size = data["page_size"]
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        logger.warning(f"Failed to load settings from {path}: {e}")
        return UserSettings(page_size=default_page_size)

    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
        logger.warning(f"Ignoring invalid page size {page_size!r} in {path}")
        return UserSettings(page_size=default_page_size)
    return UserSettings(page_size=page_size)


def save_settings(path: Path, settings: UserSettings) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"page_size": settings.page_size}
    path.write_text(json.dumps(payload, ensure_ascii=True, indent=2))
    logger.info(f"Saved settings to {path}")
