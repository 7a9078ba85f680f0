"""Shared fixtures: an in-memory board server and recording hooks."""

from __future__ import annotations

import html
import json
from itertools import count
from typing import Any, Dict, List, Optional

import pytest
import requests

from threadboard.board import ThreadBoard
from threadboard.config import BoardConfig
from threadboard.context import BoardHooks


def make_response(status: int, payload: Any = None, raw: Optional[bytes] = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = raw if raw is not None else json.dumps(payload).encode("utf-8")
    response.encoding = "utf-8"
    response.headers["Content-Type"] = "application/json"
    return response


class FakeBoardServer:
    """Stands in for requests.Session and answers like the board endpoint.

    `fail` maps a request kind ("list", "replies", "check_session",
    "create", "edit", "delete") to a one-shot answer: either an exception
    to raise or a ready made Response.
    """

    def __init__(self) -> None:
        self.cookies = requests.cookies.RequestsCookieJar()
        self.user_id: Optional[int] = 7
        self.total_pages = 1
        self.threads: List[Dict[str, Any]] = []
        self.replies: Dict[str, List[Dict[str, Any]]] = {}
        self.bare_replies = False
        self.expired = False
        self.fail: Dict[str, Any] = {}
        self.calls: List[Dict[str, Any]] = []
        self._ids = count(100)

    # --- seeding ---
    def add_thread(self, thread_id: int, user_id: int = 7, title: str = "Hello", **extra) -> Dict[str, Any]:
        thread = {
            "id": thread_id,
            "user_id": user_id,
            "username": f"user{user_id}",
            "title": title,
            "body": f"body of {thread_id}",
            "created_at": "2024-01-01 10:00:00",
            "updated_at": "2024-01-01 10:00:00",
            "reply_count": 0,
        }
        thread.update(extra)
        self.threads.append(thread)
        self.replies.setdefault(str(thread_id), [])
        return thread

    def add_reply(self, thread_id: int, body: str = "a reply", user_id: int = 7) -> Dict[str, Any]:
        reply = {
            "id": next(self._ids),
            "user_id": user_id,
            "username": f"user{user_id}",
            "body": body,
            "created_at": "2024-01-02 10:00:00",
            "updated_at": "2024-01-02 10:00:00",
        }
        self.replies.setdefault(str(thread_id), []).append(reply)
        self._sync_count(str(thread_id))
        return reply

    def _sync_count(self, thread_id: str) -> None:
        for thread in self.threads:
            if str(thread["id"]) == thread_id:
                thread["reply_count"] = len(self.replies.get(thread_id, []))

    # --- inspection ---
    def calls_of(self, kind: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["kind"] == kind]

    # --- requests.Session surface ---
    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        kind = self._kind(method, params or {}, json or {})
        self.calls.append({
            "method": method, "url": url, "kind": kind, "params": params,
            "json": json, "headers": headers, "timeout": timeout,
        })
        if self.expired:
            return make_response(401, {"error": "Not logged in"})
        if kind in self.fail:
            answer = self.fail.pop(kind)
            if isinstance(answer, Exception):
                raise answer
            return answer
        return getattr(self, f"_answer_{kind}")(params or {}, json or {})

    def _kind(self, method, params, payload) -> str:
        if method == "GET":
            if params.get("action") == "check_session":
                return "check_session"
            if "parent_id" in params:
                return "replies"
            return "list"
        action = payload.get("action")
        if action == "delete":
            return "delete"
        if action == "edit_reply":
            return "edit"
        return "create"

    def _answer_check_session(self, params, payload):
        return make_response(200, {"ok": True})

    def _answer_list(self, params, payload):
        return make_response(200, {
            "threads": self.threads,
            "totalPages": self.total_pages,
            "currentPage": int(params.get("page", 1)),
            "current_user_id": self.user_id,
        })

    def _answer_replies(self, params, payload):
        replies = self.replies.get(str(params["parent_id"]), [])
        if self.bare_replies:
            return make_response(200, replies)
        return make_response(200, {"count": len(replies), "replies": replies})

    def _answer_create(self, params, payload):
        thread_id = str(payload["parentpost_id"])
        self.add_reply(int(thread_id), body=payload["body"], user_id=self.user_id)
        return make_response(200, {"success": True})

    def _answer_edit(self, params, payload):
        for replies in self.replies.values():
            for reply in replies:
                if str(reply["id"]) == str(payload["reply_id"]):
                    reply["body"] = payload["body"]
                    reply["updated_at"] = "2024-01-03 10:00:00"
                    new_body = html.escape(payload["body"]).replace("\n", "<br />")
                    return make_response(200, {"success": True, "new_body": new_body})
        return make_response(404, {"error": "Reply not found"})

    def _answer_delete(self, params, payload):
        post_id = str(payload["id"])
        for thread_id, replies in self.replies.items():
            for reply in list(replies):
                if str(reply["id"]) == post_id:
                    replies.remove(reply)
                    self._sync_count(thread_id)
                    return make_response(200, {"success": True})
        for thread in list(self.threads):
            if str(thread["id"]) == post_id:
                self.threads.remove(thread)
                self.replies.pop(post_id, None)
                return make_response(200, {"success": True})
        return make_response(404, {"error": "Post not found"})


class RecordingHooks(BoardHooks):
    def __init__(self) -> None:
        self.alerts: List[str] = []
        self.navigations: List[str] = []
        self.confirms: List[str] = []
        self.answer = True
        self.renders = 0

    def alert(self, message: str) -> None:
        self.alerts.append(message)

    async def confirm(self, message: str) -> bool:
        self.confirms.append(message)
        return self.answer

    def navigate(self, url: str) -> None:
        self.navigations.append(url)

    def render(self) -> None:
        self.renders += 1


@pytest.fixture(autouse=True)
def cleared_sessions(monkeypatch):
    """Keep session expiry away from the real keyring."""
    cleared = []
    monkeypatch.setattr("threadboard.board.clear_session_cookie", lambda: cleared.append(True))
    return cleared


@pytest.fixture
def server():
    return FakeBoardServer()


@pytest.fixture
def hooks():
    return RecordingHooks()


@pytest.fixture
def config(tmp_path):
    return BoardConfig(base_url="http://board.test", prefs_path=tmp_path / "prefs.json")


@pytest.fixture
def board(config, hooks, server):
    return ThreadBoard(config, hooks, http=server)
