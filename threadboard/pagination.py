"""
Thread list loading, sorting and paging.

The page number and sort order live in BoardState; the total page count
is whatever the server reported on the last list fetch.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import requests

from .api_interface import ApiError
from .context import BoardContext
from .data_models import SORT_CHOICES, SortOrder, ThreadView
from .preferences import load_sort_token, save_sort_token

logger = logging.getLogger("threadboard.pagination")

LOADING_MESSAGE = "Loading threads..."
PREV_LABEL = "« Prev"
NEXT_LABEL = "Next »"


@dataclass(frozen=True)
class PageControl:
    label: str
    page: int
    current: bool = False


def page_controls(total_pages: int, current_page: int) -> List[PageControl]:
    """Prev iff not on the first page, every page number, next iff not on the last.

    No windowing: every page from 1 to total_pages gets a control.
    """
    controls: List[PageControl] = []
    if current_page > 1:
        controls.append(PageControl(PREV_LABEL, current_page - 1))
    for number in range(1, total_pages + 1):
        controls.append(PageControl(str(number), number, number == current_page))
    if current_page < total_pages:
        controls.append(PageControl(NEXT_LABEL, current_page + 1))
    return controls


def _offered_sort(token: str) -> Optional[SortOrder]:
    """The SortOrder for one of the selector's tokens, None for anything else."""
    if token not in dict(SORT_CHOICES):
        return None
    return SortOrder.from_token(token)


class PaginationController:
    def __init__(self, ctx: BoardContext):
        self.ctx = ctx

    def apply_saved_sort(self) -> None:
        """Restore the persisted sort preference, if any, before the first fetch."""
        token = load_sort_token(self.ctx.config.prefs_path)
        if token is None:
            return
        sort = _offered_sort(token)
        if sort is None:
            logger.warning("ignoring unknown saved sort %r", token)
            return
        self.ctx.state.sort = sort

    async def load(self) -> None:
        self.apply_saved_sort()
        await self.refresh()

    async def refresh(self) -> None:
        """Fetch the current page and replace everything shown."""
        state = self.ctx.state
        state.list_seq += 1
        seq = state.list_seq
        state.status = LOADING_MESSAGE
        self.ctx.rerender()

        try:
            page = await self.ctx.api.list_threads(state.sort, state.page)
        except (ApiError, requests.RequestException) as e:
            if seq != state.list_seq:
                return
            logger.warning("thread list failed: %s", e)
            state.status = ""
            state.listing_error = f"Failed to load: {e}"
            self.ctx.rerender()
            return

        if seq != state.list_seq:
            logger.debug("discarding superseded thread list response %d", seq)
            return

        state.current_user_id = page.current_user_id
        state.page = page.current_page
        state.total_pages = page.total_pages
        state.listing_error = None
        state.listing_malformed = page.malformed
        state.generation += 1
        state.threads = {t.id: ThreadView() for t in page.threads}
        state.edits.clear()
        state.deleting.clear()
        state.submitting.clear()
        self.ctx.store.replace_page(page.threads)
        state.status = ""
        self.ctx.rerender()

    async def change_sort(self, token: str) -> None:
        """Switch sort order: back to page 1, persist, re-fetch."""
        sort = _offered_sort(token)
        if sort is None:
            raise ValueError(f"unknown sort token: {token!r}")
        state = self.ctx.state
        state.sort = sort
        state.page = 1
        save_sort_token(self.ctx.config.prefs_path, sort.token)
        await self.refresh()

    async def go_to_page(self, page: int) -> bool:
        """Move to `page`; returns False without fetching when already there."""
        state = self.ctx.state
        if page == state.page:
            return False
        state.page = page
        await self.refresh()
        return True
