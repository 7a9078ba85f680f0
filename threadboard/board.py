"""
ThreadBoard: one object that owns the session, the state and every controller.

Front ends (the Textual app, tests) build a ThreadBoard with their own
BoardHooks and feed it commands.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from . import commands as cmd
from .api_interface import BoardAPI
from .composer import ReplyComposer
from .config import BoardConfig
from .context import BoardContext, BoardHooks
from .deletion import DeleteCoordinator
from .editing import InlineEditController
from .pagination import PaginationController
from .render import Node, render_board
from .replies import ReplyVisibilityController
from .session_guard import SessionGuard
from .session_store import clear_session_cookie

logger = logging.getLogger("threadboard.board")


class ThreadBoard:
    def __init__(
        self,
        config: BoardConfig,
        hooks: BoardHooks,
        http: Optional[requests.Session] = None,
    ):
        self.config = config
        self.hooks = hooks
        self.http = http if http is not None else requests.Session()
        self.guard = SessionGuard(
            self.http,
            hooks,
            login_url=config.login_url,
            timeout=config.timeout,
            on_expired=self._forget_session,
        )
        self.api = BoardAPI(self.guard, config.api_url)
        self.ctx = BoardContext(self.api, hooks, config)

        self.pagination = PaginationController(self.ctx)
        self.visibility = ReplyVisibilityController(self.ctx)
        self.editing = InlineEditController(self.ctx)
        self.deletion = DeleteCoordinator(self.ctx, self.visibility)
        self.composer = ReplyComposer(self.ctx, self.visibility)

        self.dispatcher = cmd.CommandDispatcher(self.guard)
        self._register()

    @property
    def state(self):
        return self.ctx.state

    @property
    def store(self):
        return self.ctx.store

    def set_session_cookie(self, value: str) -> None:
        self.http.cookies.set(self.config.session_cookie, value)

    def _forget_session(self) -> None:
        self.http.cookies.clear()
        clear_session_cookie()

    def render(self) -> Node:
        return render_board(self.ctx.state, self.ctx.store)

    async def dispatch(self, command: cmd.Command) -> Any:
        return await self.dispatcher.dispatch(command)

    def _register(self) -> None:
        d = self.dispatcher
        d.register(cmd.LoadBoard, lambda c: self.pagination.load())
        d.register(cmd.RefreshThreads, lambda c: self.pagination.refresh())
        d.register(cmd.ChangeSort, lambda c: self.pagination.change_sort(c.token))
        d.register(cmd.GoToPage, lambda c: self.pagination.go_to_page(c.page))
        d.register(cmd.ToggleReplies, lambda c: self.visibility.toggle(c.thread_id))
        d.register(cmd.ShowAllReplies, lambda c: self.visibility.show_all(c.thread_id))
        d.register(cmd.SubmitReply, lambda c: self.composer.submit(c.thread_id, c.body))
        d.register(cmd.BeginEdit, lambda c: self.editing.begin(c.reply_id))
        d.register(cmd.UpdateDraft, self._update_draft)
        d.register(cmd.EditKey, lambda c: self.editing.handle_key(c.reply_id, c.key))
        d.register(cmd.SaveEdit, lambda c: self.editing.save(c.reply_id))
        d.register(cmd.CancelEdit, self._cancel_edit)
        d.register(cmd.DeletePost, lambda c: self.deletion.request_delete(c.post_id))
        d.register(cmd.EditThread, self._edit_thread)
        d.register(cmd.NewThread, self._new_thread)

    async def _update_draft(self, command: cmd.UpdateDraft) -> None:
        self.editing.update_draft(command.reply_id, command.text)

    async def _cancel_edit(self, command: cmd.CancelEdit) -> None:
        self.editing.cancel(command.reply_id)

    async def _edit_thread(self, command: cmd.EditThread) -> bool:
        """Threads are edited on a separate page; check the session first."""
        thread = self.store.thread(command.thread_id)
        if thread is None or not self.state.is_owner(thread.user_id):
            return False
        try:
            await self.api.check_session()
        except requests.RequestException as e:
            logger.warning("session check before thread edit failed: %s", e)
            self.hooks.alert(f"An error occurred: {e}")
            return False
        self.hooks.navigate(self.config.edit_url(command.thread_id))
        return True

    async def _new_thread(self, command: cmd.NewThread) -> None:
        self.hooks.navigate(self.config.new_thread_url)
