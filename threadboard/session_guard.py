"""
Session guard: every network call of the client goes through here.

A 401 means the ambient session credential expired. The guard tells the
user, navigates to the login page and raises SessionExpired, which nothing
below the command dispatcher catches, so the rest of that call chain
never runs. After that the guard refuses every further request.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

import requests

logger = logging.getLogger("threadboard.session_guard")

SESSION_EXPIRED_MESSAGE = "Your session has expired. Returning to the login screen."


class SessionExpired(Exception):
    """The session credential is no longer accepted by the server."""
    pass


class SessionGuard:
    def __init__(
        self,
        http: requests.Session,
        hooks,
        login_url: str,
        timeout: float = 5.0,
        on_expired: Optional[Callable[[], None]] = None,
    ):
        self.http = http
        self.hooks = hooks
        self.login_url = login_url
        self.timeout = timeout
        self.on_expired = on_expired
        self.halted = False

    async def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Issue one request off the event loop and screen it for expiry.

        Transport errors (requests.RequestException) and non-2xx statuses
        other than 401 are returned or raised unchanged for the caller.
        """
        if self.halted:
            raise SessionExpired("client halted after session expiry")

        kwargs.setdefault("timeout", self.timeout)
        response = await asyncio.to_thread(self.http.request, method, url, **kwargs)

        if response.status_code == 401:
            # a concurrent chain may have tripped the guard while we waited
            if not self.halted:
                self._expire()
            raise SessionExpired("session expired")
        return response

    def _expire(self) -> None:
        self.halted = True
        logger.warning("session expired; redirecting to %s", self.login_url)
        if self.on_expired is not None:
            self.on_expired()
        self.hooks.alert(SESSION_EXPIRED_MESSAGE)
        self.hooks.navigate(self.login_url)
