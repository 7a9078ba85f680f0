"""
API Interface Layer for threadboard.
This module talks to the board's JSON endpoint and turns its loosely
shaped responses into the dataclasses the controllers work with.
Nothing in here touches the view.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import requests

from .data_models import Reply, ReplySet, SortOrder, Thread, ThreadPage
from .formatting import sanitize_body
from .session_guard import SessionGuard

logger = logging.getLogger("threadboard.api_interface")

NO_STORE = {"Cache-Control": "no-store", "Pragma": "no-cache"}


class ApiError(Exception):
    """The server rejected a request or answered with something unusable."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


def _http_error(status: int) -> str:
    return f"HTTP error: {status}"


def _opt_id(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class BoardAPI:
    """Client for the board endpoint.

    Every request goes through the shared SessionGuard, so a 401 anywhere
    halts the client instead of reaching these methods' callers.
    """

    def __init__(self, guard: SessionGuard, api_url: str):
        self.guard = guard
        self.api_url = api_url

    # --- helpers ---
    async def _get(self, params: Dict[str, Any], fresh: bool = False) -> requests.Response:
        headers = None
        if fresh:
            params = dict(params, _=int(time.time() * 1000))
            headers = dict(NO_STORE)
        return await self.guard.request("GET", self.api_url, params=params, headers=headers)

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self.guard.request("POST", self.api_url, json=payload)
        try:
            result = resp.json()
        except ValueError:
            logger.warning("non-JSON answer to %s (status %s)", payload.get("action", "post"), resp.status_code)
            result = {"error": _http_error(resp.status_code)}
        if not isinstance(result, dict):
            result = {}
        if not resp.ok:
            raise ApiError(result.get("error") or _http_error(resp.status_code), resp.status_code)
        return result

    # --- reads ---
    async def list_threads(self, sort: SortOrder, page: int) -> ThreadPage:
        """Fetch one page of threads.

        A payload whose `threads` is not a list (or that is not JSON at all)
        degrades to an empty page; non-2xx statuses raise ApiError.
        """
        resp = await self._get(
            {"sort": sort.field.value, "order": sort.direction.value, "page": page}
        )
        if not resp.ok:
            raise ApiError(_http_error(resp.status_code), resp.status_code)
        try:
            data = resp.json()
        except ValueError:
            logger.warning("thread list was not valid JSON")
            return ThreadPage(threads=[], malformed=True)
        if not isinstance(data, dict):
            logger.warning("thread list payload is %s, not an object", type(data).__name__)
            return ThreadPage(threads=[], malformed=True)

        user_id = _opt_id(data.get("current_user_id"))
        raw_threads = data.get("threads")
        if not isinstance(raw_threads, list):
            logger.warning("data.threads is not a list: %r", raw_threads)
            return ThreadPage(threads=[], current_user_id=user_id, malformed=True)

        return ThreadPage(
            threads=[self._convert_thread(t) for t in raw_threads if isinstance(t, dict)],
            total_pages=max(_int(data.get("totalPages"), 1) or 1, 1),
            current_page=max(_int(data.get("currentPage"), 1) or 1, 1),
            current_user_id=user_id,
        )

    async def list_replies(self, thread_id: str) -> ReplySet:
        """Fetch every reply of a thread, bypassing caches.

        Accepts both `{count, replies}` and a bare list; the list length is
        the count when the server does not send one.
        """
        resp = await self._get({"parent_id": thread_id}, fresh=True)
        if not resp.ok:
            raise ApiError(_http_error(resp.status_code), resp.status_code)
        try:
            data = resp.json()
        except ValueError:
            raise ApiError("Malformed reply list", resp.status_code) from None

        if isinstance(data, list):
            raw_replies, count = data, None
        elif isinstance(data, dict) and isinstance(data.get("replies"), list):
            raw_replies, count = data["replies"], data.get("count")
        else:
            raise ApiError("Malformed reply list", resp.status_code)

        replies = [self._convert_reply(r, thread_id) for r in raw_replies if isinstance(r, dict)]
        return ReplySet(replies=replies, count=_int(count, 0) or len(replies))

    async def check_session(self) -> bool:
        """Round trip whose only purpose is to let the guard see a 401."""
        resp = await self.guard.request("GET", self.api_url, params={"action": "check_session"})
        return resp.ok

    # --- mutations ---
    async def create_reply(self, thread_id: str, body: str) -> Dict[str, Any]:
        result = await self._post({"body": body, "parentpost_id": thread_id})
        if result.get("error"):
            raise ApiError(result["error"])
        return result

    async def edit_reply(self, reply_id: str, body: str) -> str:
        """Submit a new body and return the server-sanitized version."""
        result = await self._post({"action": "edit_reply", "reply_id": reply_id, "body": body})
        new_body = result.get("new_body")
        if not result.get("success") or not isinstance(new_body, str):
            raise ApiError(result.get("error") or "Update failed")
        return new_body

    async def delete_post(self, post_id: str) -> Dict[str, Any]:
        result = await self._post({"action": "delete", "id": post_id})
        if result.get("error"):
            raise ApiError(result["error"])
        return result

    # --- conversion helpers ---
    def _convert_thread(self, t: Dict[str, Any]) -> Thread:
        created = str(t.get("created_at") or "")
        return Thread(
            id=str(t.get("id")),
            user_id=_opt_id(t.get("user_id")),
            username=str(t.get("username") or ""),
            title=str(t.get("title") or ""),
            body=str(t.get("body") or ""),
            created_at=created,
            updated_at=str(t.get("updated_at") or created),
            reply_count=max(_int(t.get("reply_count"), 0), 0),
        )

    def _convert_reply(self, r: Dict[str, Any], thread_id: str) -> Reply:
        created = str(r.get("created_at") or "")
        updated = str(r.get("updated_at") or created)
        body = str(r.get("body") or "")
        return Reply(
            id=str(r.get("id")),
            thread_id=thread_id,
            user_id=_opt_id(r.get("user_id")),
            username=str(r.get("username") or ""),
            body=body,
            display_body=sanitize_body(body),
            created_at=created,
            updated_at=updated,
            edited=updated != created,
        )
