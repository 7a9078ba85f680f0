"""Objects every controller shares by reference."""
from __future__ import annotations

import logging
from typing import Optional

from .api_interface import BoardAPI
from .config import BoardConfig
from .data_models import BoardState
from .store import EntityStore

logger = logging.getLogger("threadboard.context")


class BoardHooks:
    """What the controllers need from whatever is displaying the board."""

    def alert(self, message: str) -> None: ...
    async def confirm(self, message: str) -> bool: ...
    def navigate(self, url: str) -> None: ...
    def render(self) -> None: ...


class BoardContext:
    def __init__(
        self,
        api: BoardAPI,
        hooks: BoardHooks,
        config: BoardConfig,
        state: Optional[BoardState] = None,
        store: Optional[EntityStore] = None,
    ):
        self.api = api
        self.hooks = hooks
        self.config = config
        self.state = state or BoardState()
        self.store = store or EntityStore()

    def rerender(self) -> None:
        self.hooks.render()

    def thread_gone(self, thread_id: str, generation: int) -> bool:
        """True when a response for `thread_id` no longer has a place in the view."""
        if generation != self.state.generation or self.store.thread(thread_id) is None:
            logger.debug("discarding stale response for thread %s", thread_id)
            return True
        return False
