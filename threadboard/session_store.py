"""Persistence for the board's session cookie.

The cookie is the ambient credential the server issued at login. It is
kept in the system keyring when one is available and in a fallback file
otherwise. Storage problems are logged and never reach the UI.

Functions:
  - save_session_cookie(value) -> None
  - load_session_cookie() -> Optional[str]
  - clear_session_cookie() -> None
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .config import FALLBACK_SESSION_FILE, KEYRING_SERVICE, SESSION_KEY

logger = logging.getLogger("threadboard.session_store")


def _read_fallback(path: Path) -> Optional[str]:
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug("session_store: unreadable fallback file %s: %s", path, e)
        return None
    value = data.get(SESSION_KEY) if isinstance(data, dict) else None
    return value if isinstance(value, str) and value else None


def _write_fallback(path: Path, value: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({SESSION_KEY: value}), encoding="utf-8")
        try:
            path.chmod(0o600)
        except OSError:
            pass
    except OSError as e:
        logger.warning("session_store: could not write %s: %s", path, e)


def save_session_cookie(value: str, fallback: Path = FALLBACK_SESSION_FILE) -> None:
    """Store the cookie in keyring, or in the fallback file if keyring fails."""
    try:
        keyring.set_password(KEYRING_SERVICE, SESSION_KEY, value)
        logger.debug("session_store: cookie saved to keyring")
        return
    except KeyringError as e:
        logger.debug("session_store: keyring write failed (%s); using %s", e, fallback)
    _write_fallback(fallback, value)


def load_session_cookie(fallback: Path = FALLBACK_SESSION_FILE) -> Optional[str]:
    try:
        value = keyring.get_password(KEYRING_SERVICE, SESSION_KEY)
    except KeyringError as e:
        logger.debug("session_store: keyring read failed: %s", e)
        value = None
    if value:
        return value
    return _read_fallback(fallback)


def clear_session_cookie(fallback: Path = FALLBACK_SESSION_FILE) -> None:
    """Forget the cookie everywhere it might be stored."""
    try:
        keyring.delete_password(KEYRING_SERVICE, SESSION_KEY)
    except PasswordDeleteError:
        pass
    except KeyringError as e:
        logger.debug("session_store: keyring delete failed: %s", e)
    try:
        fallback.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("session_store: could not remove %s: %s", fallback, e)
