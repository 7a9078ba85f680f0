"""
Typed user commands and the dispatcher that routes them to controllers.

The view never calls controllers directly: each affordance carries one of
these commands and hands it to `CommandDispatcher.dispatch`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Type

from .session_guard import SessionExpired, SessionGuard

logger = logging.getLogger("threadboard.commands")


class Command:
    """Base class for everything the user can ask the board to do."""


@dataclass(frozen=True)
class LoadBoard(Command):
    pass


@dataclass(frozen=True)
class RefreshThreads(Command):
    pass


@dataclass(frozen=True)
class ChangeSort(Command):
    token: str


@dataclass(frozen=True)
class GoToPage(Command):
    page: int


@dataclass(frozen=True)
class ToggleReplies(Command):
    thread_id: str


@dataclass(frozen=True)
class ShowAllReplies(Command):
    thread_id: str


@dataclass(frozen=True)
class SubmitReply(Command):
    thread_id: str
    body: str = ""


@dataclass(frozen=True)
class BeginEdit(Command):
    reply_id: str


@dataclass(frozen=True)
class UpdateDraft(Command):
    reply_id: str
    text: str


@dataclass(frozen=True)
class EditKey(Command):
    reply_id: str
    key: str


@dataclass(frozen=True)
class SaveEdit(Command):
    reply_id: str


@dataclass(frozen=True)
class CancelEdit(Command):
    reply_id: str


@dataclass(frozen=True)
class DeletePost(Command):
    post_id: str


@dataclass(frozen=True)
class EditThread(Command):
    thread_id: str


@dataclass(frozen=True)
class NewThread(Command):
    pass


Handler = Callable[[Any], Awaitable[Any]]


class CommandDispatcher:
    def __init__(self, guard: SessionGuard):
        self.guard = guard
        self._handlers: Dict[Type[Command], Handler] = {}

    def register(self, command_type: Type[Command], handler: Handler) -> None:
        self._handlers[command_type] = handler

    async def dispatch(self, command: Command) -> Any:
        """Run the handler for `command`.

        Returns None without doing anything once the session guard has
        halted the client; a SessionExpired raised mid-command ends that
        command here.
        """
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"no handler for {type(command).__name__}")
        if self.guard.halted:
            logger.debug("ignoring %r, client halted", command)
            return None
        try:
            return await handler(command)
        except SessionExpired:
            logger.debug("%r stopped by session expiry", command)
            return None
