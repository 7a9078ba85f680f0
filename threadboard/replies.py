"""
Open/close state of each thread's replies.

    collapsed -> loading -> expanded-partial | expanded-full
    expanded-* -> collapsed            (count refreshed first)
    expanded-partial -> expanded-full  ("show all")

A thread with more than MAX_VISIBLE replies opens partially, showing the
most recent ones; once the user asks for all of them the view stays full
until it is collapsed again.
"""
from __future__ import annotations

import logging
from typing import List

import requests

from .api_interface import ApiError
from .context import BoardContext
from .data_models import Reply, ThreadView, Visibility

logger = logging.getLogger("threadboard.replies")

MAX_VISIBLE = 2


def visible_replies(replies: List[Reply], view: ThreadView) -> List[Reply]:
    """The replies a thread shows in its current state, in server order."""
    if view.visibility is Visibility.PARTIAL:
        return replies[-MAX_VISIBLE:]
    if view.visibility is Visibility.FULL:
        return list(replies)
    return []


class ReplyVisibilityController:
    def __init__(self, ctx: BoardContext):
        self.ctx = ctx

    async def toggle(self, thread_id: str) -> None:
        """The count button: open a collapsed thread, collapse an open one."""
        if self.ctx.store.thread(thread_id) is None:
            return
        view = self.ctx.state.thread_view(thread_id)
        if view.visibility is Visibility.LOADING:
            return
        if view.visibility.expanded:
            await self.collapse(thread_id)
        else:
            await self.open(thread_id)

    async def collapse(self, thread_id: str) -> None:
        """Close the replies, refreshing the badge count on the way out.

        A failed count fetch keeps the last known count and still collapses.
        """
        generation = self.ctx.state.generation
        try:
            fresh = await self.ctx.api.list_replies(thread_id)
        except (ApiError, requests.RequestException) as e:
            logger.debug("count refresh for thread %s failed, keeping last count: %s", thread_id, e)
        else:
            if not self.ctx.thread_gone(thread_id, generation):
                self.ctx.store.set_count(thread_id, fresh.count)

        if self.ctx.thread_gone(thread_id, generation):
            return
        view = self.ctx.state.thread_view(thread_id)
        view.visibility = Visibility.COLLAPSED
        view.show_all = False
        view.show_all_pending = False
        view.error = None
        self.ctx.rerender()

    async def open(self, thread_id: str, full: bool = False) -> None:
        """Load the replies and expand.

        `full` skips truncation; reply creation and deletion use it so the
        user always sees the effect of their action.
        """
        state = self.ctx.state
        generation = state.generation
        view = state.thread_view(thread_id)
        previous = view.visibility
        view.visibility = Visibility.LOADING
        view.error = None
        self.ctx.rerender()

        try:
            result = await self.ctx.api.list_replies(thread_id)
        except (ApiError, requests.RequestException) as e:
            if self.ctx.thread_gone(thread_id, generation):
                return
            logger.warning("loading replies of thread %s failed: %s", thread_id, e)
            view = state.thread_view(thread_id)
            if previous is Visibility.LOADING:
                previous = Visibility.COLLAPSED
            if full and previous.expanded:
                # the store still holds every loaded reply; show them all
                previous = Visibility.FULL
                view.show_all = False
            view.visibility = previous
            view.error = f"Failed to load replies: {e}"
            self.ctx.rerender()
            return

        if self.ctx.thread_gone(thread_id, generation):
            return
        self.ctx.store.set_replies(thread_id, result.replies, result.count)
        view = state.thread_view(thread_id)
        view.error = None
        view.show_all_pending = False
        if full or len(result.replies) <= MAX_VISIBLE:
            view.visibility = Visibility.FULL
            view.show_all = False
        else:
            view.visibility = Visibility.PARTIAL
            view.show_all = True
        self.ctx.rerender()

    async def show_all(self, thread_id: str) -> None:
        """Replace a partial view with every reply, fetched fresh."""
        state = self.ctx.state
        view = state.thread_view(thread_id)
        if view.visibility is not Visibility.PARTIAL or not view.show_all or view.show_all_pending:
            return
        generation = state.generation
        view.show_all_pending = True
        self.ctx.rerender()

        try:
            result = await self.ctx.api.list_replies(thread_id)
        except (ApiError, requests.RequestException) as e:
            if self.ctx.thread_gone(thread_id, generation):
                return
            logger.warning("show all for thread %s failed: %s", thread_id, e)
            view = state.thread_view(thread_id)
            view.show_all_pending = False
            view.error = f"Failed to reload replies: {e}"
            self.ctx.rerender()
            return

        if self.ctx.thread_gone(thread_id, generation):
            return
        view = state.thread_view(thread_id)
        if view.visibility is not Visibility.PARTIAL:
            # collapsed or reopened while the fetch was in flight
            view.show_all_pending = False
            return
        self.ctx.store.set_replies(thread_id, result.replies, result.count)
        view.visibility = Visibility.FULL
        view.show_all = False
        view.show_all_pending = False
        view.error = None
        self.ctx.rerender()
