"""Posting a new reply under a thread."""
from __future__ import annotations

import logging

import requests

from .api_interface import ApiError
from .context import BoardContext
from .replies import ReplyVisibilityController

logger = logging.getLogger("threadboard.composer")

EMPTY_REPLY_MESSAGE = "Please enter a reply."


class ReplyComposer:
    def __init__(self, ctx: BoardContext, visibility: ReplyVisibilityController):
        self.ctx = ctx
        self.visibility = visibility

    def update_draft(self, thread_id: str, text: str) -> None:
        self.ctx.state.drafts[thread_id] = text

    async def submit(self, thread_id: str, body: str) -> bool:
        """Send a reply; on success open the thread fully and clear the draft."""
        state = self.ctx.state
        if thread_id in state.submitting or self.ctx.store.thread(thread_id) is None:
            return False
        state.drafts[thread_id] = body
        if not body.strip():
            self.ctx.hooks.alert(EMPTY_REPLY_MESSAGE)
            return False

        state.submitting.add(thread_id)
        self.ctx.rerender()
        try:
            await self.ctx.api.create_reply(thread_id, body)
        except (ApiError, requests.RequestException) as e:
            message = e.message if isinstance(e, ApiError) else str(e)
            logger.warning("reply to thread %s failed: %s", thread_id, message)
            state.submitting.discard(thread_id)
            self.ctx.rerender()
            self.ctx.hooks.alert(message)
            return False

        state.submitting.discard(thread_id)
        state.drafts.pop(thread_id, None)
        if self.ctx.store.thread(thread_id) is not None:
            await self.visibility.open(thread_id, full=True)
        else:
            self.ctx.rerender()
        return True
