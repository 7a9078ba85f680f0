"""Local storage for the user's sort preference."""
import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger("threadboard.preferences")

SORT_KEY = "thread_sort"


def _load(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("could not read preferences from %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def load_sort_token(path: Path) -> Optional[str]:
    """Return the persisted sort token, or None when nothing usable is stored."""
    value = _load(path).get(SORT_KEY)
    return value if isinstance(value, str) and value else None


def save_sort_token(path: Path, token: str) -> None:
    """Persist the sort token, keeping any other keys in the file."""
    data = _load(path)
    data[SORT_KEY] = token
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
    except OSError as e:
        logger.warning("could not save preferences to %s: %s", path, e)
