"""
Deleting threads and replies.

    click -> session check -> confirm -> in flight -> removed | restored

The delete control is disabled before the delete request goes out and is
the only guard against double submission.
"""
from __future__ import annotations

import logging
from typing import Set

import requests

from .api_interface import ApiError
from .context import BoardContext
from .replies import ReplyVisibilityController

logger = logging.getLogger("threadboard.deletion")

CONFIRM_MESSAGE = "Really delete this post?"
DELETED_MESSAGE = "Deleted."


class DeleteCoordinator:
    def __init__(self, ctx: BoardContext, visibility: ReplyVisibilityController):
        self.ctx = ctx
        self.visibility = visibility
        # clicks waiting on the session check or the confirmation prompt
        self._pending: Set[str] = set()

    def can_delete(self, post_id: str) -> bool:
        store, state = self.ctx.store, self.ctx.state
        post = store.reply(post_id) or store.thread(post_id)
        return post is not None and state.is_owner(post.user_id)

    async def request_delete(self, post_id: str) -> bool:
        state = self.ctx.state
        if post_id in state.deleting or post_id in self._pending:
            return False
        if not self.can_delete(post_id):
            return False

        self._pending.add(post_id)
        try:
            try:
                await self.ctx.api.check_session()
            except requests.RequestException as e:
                logger.warning("session check before delete failed: %s", e)
                self.ctx.hooks.alert(f"An error occurred: {e}")
                return False
            if not await self.ctx.hooks.confirm(CONFIRM_MESSAGE):
                return False
        finally:
            self._pending.discard(post_id)

        if not self.can_delete(post_id) or post_id in state.deleting:
            return False
        return await self._delete(post_id)

    async def _delete(self, post_id: str) -> bool:
        state, store = self.ctx.state, self.ctx.store
        generation = state.generation
        reply = store.reply(post_id)

        state.deleting.add(post_id)
        self.ctx.rerender()
        try:
            await self.ctx.api.delete_post(post_id)
        except (ApiError, requests.RequestException) as e:
            message = e.message if isinstance(e, ApiError) else str(e)
            logger.warning("deleting post %s failed: %s", post_id, message)
            state.deleting.discard(post_id)
            self.ctx.rerender()
            self.ctx.hooks.alert(f"Error: {message}")
            return False

        state.deleting.discard(post_id)
        if generation != state.generation:
            logger.debug("post %s deleted after the list was reloaded", post_id)
            self.ctx.rerender()
            self.ctx.hooks.alert(DELETED_MESSAGE)
            return True

        if reply is None:
            store.remove_thread(post_id)
            state.threads.pop(post_id, None)
            state.drafts.pop(post_id, None)
            self.ctx.rerender()
        else:
            thread_id = reply.thread_id
            store.remove_reply(post_id)
            state.edits.pop(post_id, None)
            # interim value until the refetch below reports the real count
            store.set_count(thread_id, store.count(thread_id) - 1)
            view = state.thread_view(thread_id)
            view.show_all = False
            if store.thread(thread_id) is not None:
                await self.visibility.open(thread_id, full=True)
        self.ctx.hooks.alert(DELETED_MESSAGE)
        return True
