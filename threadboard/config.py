"""Configuration and logging setup for threadboard."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlencode

from dotenv import load_dotenv

# Storage settings
KEYRING_SERVICE = "threadboard"
SESSION_KEY = "session_cookie"
DEFAULT_SESSION_COOKIE = "PHPSESSID"
FALLBACK_SESSION_FILE = Path.home() / ".threadboard_session.json"
DEFAULT_PREFS_FILE = Path.home() / ".threadboard_prefs.json"
DEBUG_LOG_FILE = Path.home() / ".threadboard_debug.log"

DEFAULT_TIMEOUT = 5.0


def _env_path(name: str, default: Path) -> Path:
    value = os.getenv(name)
    if value:
        return Path(value).expanduser()
    return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logging.getLogger("threadboard.config").warning(
            "ignoring malformed %s=%r", name, value
        )
        return default


@dataclass
class BoardConfig:
    """Where the board lives and where local state is kept."""

    base_url: str = "http://localhost:8000"
    api_path: str = "api.php"
    login_path: str = "login.php"
    edit_path: str = "edit_post.php"
    new_thread_path: str = "new_thread.php"
    session_cookie: str = DEFAULT_SESSION_COOKIE
    timeout: float = DEFAULT_TIMEOUT
    prefs_path: Path = field(default_factory=lambda: DEFAULT_PREFS_FILE)
    debug: bool = False

    def url(self, path: str, **params) -> str:
        url = f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"
        if params:
            url = f"{url}?{urlencode(params)}"
        return url

    @property
    def api_url(self) -> str:
        return self.url(self.api_path)

    @property
    def login_url(self) -> str:
        return self.url(self.login_path)

    @property
    def new_thread_url(self) -> str:
        return self.url(self.new_thread_path)

    def edit_url(self, thread_id: str) -> str:
        return self.url(self.edit_path, id=thread_id)


def load_config() -> BoardConfig:
    """Build the config from the environment (and a local .env file)."""

    load_dotenv(override=False)
    defaults = BoardConfig()
    return BoardConfig(
        base_url=os.getenv("THREADBOARD_URL", defaults.base_url),
        api_path=os.getenv("THREADBOARD_API_PATH", defaults.api_path),
        login_path=os.getenv("THREADBOARD_LOGIN_PATH", defaults.login_path),
        edit_path=os.getenv("THREADBOARD_EDIT_PATH", defaults.edit_path),
        new_thread_path=os.getenv(
            "THREADBOARD_NEW_THREAD_PATH", defaults.new_thread_path
        ),
        session_cookie=os.getenv(
            "THREADBOARD_SESSION_COOKIE", defaults.session_cookie
        ),
        timeout=_env_float("THREADBOARD_TIMEOUT", defaults.timeout),
        prefs_path=_env_path("THREADBOARD_PREFS", DEFAULT_PREFS_FILE),
        debug=bool(os.getenv("THREADBOARD_DEBUG")),
    )


def configure_logging(debug: bool = False) -> logging.Logger:
    """Route the `threadboard` logger to a debug file.

    Textual owns stdout/stderr while the app runs, so messages only go to
    ~/.threadboard_debug.log and only when debugging is enabled.
    """
    logger = logging.getLogger("threadboard")
    if not debug:
        logger.setLevel(logging.WARNING)
        return logger

    logger.setLevel(logging.DEBUG)
    already = any(
        isinstance(h, logging.FileHandler)
        and getattr(h, "baseFilename", "") == str(DEBUG_LOG_FILE)
        for h in logger.handlers
    )
    if not already:
        try:
            fh = logging.FileHandler(str(DEBUG_LOG_FILE), encoding="utf-8")
        except OSError:
            # an unwritable home directory leaves logging disabled
            return logger
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(fh)
    return logger
