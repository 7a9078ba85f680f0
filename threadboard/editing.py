"""
Inline editing of a reply body.

    view -> editing -> saving -> view (updated)
                              -> editing (on failure, to retry or cancel)
    editing -> view (cancel, no network)

Only the reply's owner can start an edit, and only one edit session may
exist per reply.
"""
from __future__ import annotations

import logging
from enum import Enum

import requests

from .api_interface import ApiError
from .context import BoardContext
from .data_models import EditPhase, EditSession
from .formatting import display_from_server

logger = logging.getLogger("threadboard.editing")

EMPTY_BODY_MESSAGE = "Please enter a message."
NETWORK_MESSAGE = "Could not reach the server."


class KeyAction(str, Enum):
    COMMIT = "commit"
    NEWLINE = "newline"
    CANCEL = "cancel"
    IGNORE = "ignore"


_MODIFIERS = ("ctrl+", "shift+", "meta+", "alt+", "super+")


def classify_key(key: str) -> KeyAction:
    """Map a Textual key name to what it means inside the reply editor."""
    if key == "enter":
        return KeyAction.COMMIT
    if key.endswith("enter") and key.startswith(_MODIFIERS):
        return KeyAction.NEWLINE
    if key == "escape":
        return KeyAction.CANCEL
    return KeyAction.IGNORE


class InlineEditController:
    def __init__(self, ctx: BoardContext):
        self.ctx = ctx

    def can_edit(self, reply_id: str) -> bool:
        reply = self.ctx.store.reply(reply_id)
        return reply is not None and self.ctx.state.is_owner(reply.user_id)

    async def begin(self, reply_id: str) -> bool:
        """Open the editor for a reply, seeded with its raw text.

        Re-entry while an editor is already open is a no-op.
        """
        state = self.ctx.state
        if reply_id in state.edits or not self.can_edit(reply_id):
            return False

        try:
            await self.ctx.api.check_session()
        except requests.RequestException as e:
            logger.warning("session check before edit failed: %s", e)
            self.ctx.hooks.alert(f"An error occurred: {e}")
            return False

        # another begin may have won the race, or the reply went away
        if reply_id in state.edits or not self.can_edit(reply_id):
            return False
        raw = self.ctx.store.reply(reply_id).body
        state.edits[reply_id] = EditSession(reply_id=reply_id, original=raw, draft=raw)
        self.ctx.rerender()
        return True

    def update_draft(self, reply_id: str, text: str) -> None:
        session = self.ctx.state.edits.get(reply_id)
        if session is not None and session.phase is EditPhase.EDITING:
            session.draft = text

    def cancel(self, reply_id: str) -> None:
        """Drop the editor; the reply keeps its pre-edit raw text."""
        session = self.ctx.state.edits.get(reply_id)
        if session is None or session.phase is EditPhase.SAVING:
            return
        del self.ctx.state.edits[reply_id]
        self.ctx.rerender()

    async def handle_key(self, reply_id: str, key: str) -> KeyAction:
        """Act on a key pressed in the editor.

        A line break is inserted at the cursor by the editor widget itself,
        which then reports the new draft through update_draft.
        """
        action = classify_key(key)
        if action is KeyAction.COMMIT:
            await self.save(reply_id)
        elif action is KeyAction.CANCEL:
            self.cancel(reply_id)
        return action

    async def save(self, reply_id: str) -> bool:
        state = self.ctx.state
        session = state.edits.get(reply_id)
        if session is None or session.phase is EditPhase.SAVING:
            return False

        text = session.draft.strip()
        if not text:
            self.ctx.hooks.alert(EMPTY_BODY_MESSAGE)
            return False

        session.phase = EditPhase.SAVING
        self.ctx.rerender()
        try:
            new_body = await self.ctx.api.edit_reply(reply_id, text)
        except ApiError as e:
            self._back_to_editing(reply_id, session)
            self.ctx.hooks.alert(e.message)
            return False
        except requests.RequestException as e:
            logger.warning("saving reply %s failed: %s", reply_id, e)
            self._back_to_editing(reply_id, session)
            self.ctx.hooks.alert(NETWORK_MESSAGE)
            return False

        if state.edits.get(reply_id) is session:
            del state.edits[reply_id]
        if self.ctx.store.apply_edit(reply_id, text, display_from_server(new_body)) is None:
            logger.debug("reply %s left the view before its edit returned", reply_id)
        self.ctx.rerender()
        return True

    def _back_to_editing(self, reply_id: str, session: EditSession) -> None:
        if self.ctx.state.edits.get(reply_id) is session:
            session.phase = EditPhase.EDITING
            self.ctx.rerender()
