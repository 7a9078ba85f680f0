from __future__ import annotations

import argparse
import logging
import webbrowser
from typing import Dict, Optional

import requests
from rich.markup import escape
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.css.query import NoMatches
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widget import Widget
from textual.widgets import Button, Input, Select, Static, TextArea

from .board import ThreadBoard
from .commands import (
    ChangeSort,
    Command,
    EditKey,
    GoToPage,
    LoadBoard,
    NewThread,
    RefreshThreads,
    SubmitReply,
)
from .config import BoardConfig, configure_logging, load_config
from .context import BoardHooks
from .data_models import SORT_CHOICES
from .editing import KeyAction, classify_key
from .render import Node
from .session_guard import SESSION_EXPIRED_MESSAGE
from .session_store import load_session_cookie, save_session_cookie

logger = logging.getLogger("threadboard.main")

# node kinds laid out side by side; every other container stacks vertically
_ROWS = {"thread-header", "thread-actions", "reply-meta", "reply-actions", "pagination"}
_CONTAINERS = _ROWS | {"board", "thread-list", "thread", "replies", "reply"}


# ───────── Widgets ─────────
class CommandButton(Button):
    """A button that carries the command of the node it was built from."""

    def __init__(self, node: Node, **kwargs):
        super().__init__(node.text, disabled=not node.enabled, classes=node.kind, **kwargs)
        self.command = node.command


class ReplyBody(Static):
    """Reply text; clicking an owned reply starts editing it."""

    def __init__(self, node: Node, **kwargs):
        super().__init__(node.text, classes="reply-body", **kwargs)
        self.command = node.command

    def on_click(self) -> None:
        if self.command is not None:
            self.app.dispatch_command(self.command)


class ReplyEditor(TextArea):
    """Inline editor: Enter saves, modifier+Enter breaks the line, Escape cancels."""

    def __init__(self, node: Node, **kwargs):
        super().__init__(node.text, classes="editor", disabled=not node.enabled, **kwargs)
        self.reply_id = node.key

    def _on_key(self, event: events.Key) -> None:
        action = classify_key(event.key)
        if action is KeyAction.IGNORE:
            return
        event.prevent_default()
        event.stop()
        if action is KeyAction.NEWLINE:
            self.insert("\n")
            return
        # the saved text must be what is on screen right now
        self.app.board.editing.update_draft(self.reply_id, self.text)
        self.app.dispatch_command(EditKey(self.reply_id, event.key))


class ComposerInput(Input):
    def __init__(self, node: Node, **kwargs):
        super().__init__(
            value=node.text,
            placeholder="Write a reply...",
            disabled=not node.enabled,
            classes="composer-input",
            **kwargs,
        )
        self.thread_id = node.key


class ConfirmDialog(ModalScreen[bool]):
    """Modal yes/no prompt used before deleting a post."""

    cursor_position = reactive(1)  # 0 = Yes, 1 = Cancel

    def __init__(self, message: str):
        super().__init__()
        self.message = message

    def compose(self) -> ComposeResult:
        with Container(id="dialog-container"):
            yield Static("Delete post?", id="dialog-title")
            yield Static(self.message, classes="dialog-message", markup=False)
            with Horizontal(id="action-buttons"):
                yield Button("Yes, delete", id="confirm-delete", variant="error")
                yield Button("Cancel", id="cancel-delete")

    def on_mount(self) -> None:
        self.query_one("#cancel-delete", Button).focus()

    def key_h(self) -> None:
        self.cursor_position = 0

    def key_l(self) -> None:
        self.cursor_position = 1

    def key_escape(self) -> None:
        self.dismiss(False)

    def watch_cursor_position(self, old_position: int, new_position: int) -> None:
        button_id = "#confirm-delete" if new_position == 0 else "#cancel-delete"
        try:
            self.query_one(button_id, Button).focus()
        except NoMatches:
            pass

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.dismiss(event.button.id == "confirm-delete")


# ───────── Hooks ─────────
class AppHooks(BoardHooks):
    """Connects the controllers to the running Textual app."""

    def __init__(self, app: "ThreadBoardApp"):
        self.app = app

    def alert(self, message: str) -> None:
        self.app.notify(escape(message))

    async def confirm(self, message: str) -> bool:
        return bool(await self.app.push_screen_wait(ConfirmDialog(message)))

    def navigate(self, url: str) -> None:
        """Open `url` in the browser and close the client.

        Toasts die with the app, so an expiry notice is repeated on the
        terminal after it exits.
        """
        logger.info("navigating to %s", url)
        webbrowser.open(url)
        lines = []
        if self.app.board.guard.halted:
            lines.append(SESSION_EXPIRED_MESSAGE)
        lines.append(f"Continue at {url}")
        self.app.exit(message="\n".join(lines))

    def render(self) -> None:
        self.app.schedule_rebuild()


# ───────── App ─────────
class ThreadBoardApp(App):
    ENABLE_COMMAND_PALETTE = False

    CSS = """
    #toolbar { height: auto; }
    #status { height: auto; text-style: dim; }
    .thread { height: auto; border: round $primary; padding: 0 1; margin-bottom: 1; }
    .thread-list, .replies, .reply, .board { height: auto; }
    .thread-header, .thread-actions, .reply-meta, .reply-actions, .composer, .pagination { height: auto; }
    .title { text-style: bold; }
    .replies { padding-left: 2; }
    .reply { border-left: solid $secondary; padding-left: 1; margin-top: 1; }
    .edited { color: $warning; padding: 0 1; }
    .date { text-style: dim; padding: 0 1; }
    .error { color: $error; }
    .placeholder { text-style: dim; }
    .editor { height: 6; }
    .composer-input { width: 1fr; }
    .page-current { text-style: bold reverse; padding: 0 1; }
    #dialog-container { width: 50; height: auto; border: thick $error; padding: 1 2; background: $surface; }
    ConfirmDialog { align: center middle; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("n", "new_thread", "New thread"),
        Binding("left_square_bracket", "prev_page", "Prev page"),
        Binding("right_square_bracket", "next_page", "Next page"),
    ]

    def __init__(
        self,
        config: BoardConfig,
        session_cookie: Optional[str] = None,
        http: Optional[requests.Session] = None,
    ):
        super().__init__()
        self.board = ThreadBoard(config, AppHooks(self), http=http)
        if session_cookie:
            self.board.set_session_cookie(session_cookie)
        self._rebuild_pending = False
        self._composers: Dict[str, ComposerInput] = {}

    def compose(self) -> ComposeResult:
        yield Static("threadboard", id="app-header", markup=False)
        with Horizontal(id="toolbar"):
            yield Select(
                [(label, token) for token, label in SORT_CHOICES],
                value=self.board.state.sort.token,
                allow_blank=False,
                id="sort-select",
            )
            yield Button("↻", id="refresh-button")
            yield Button("New thread", id="new-thread-button", variant="primary")
        yield Static("", id="status")
        yield VerticalScroll(id="thread-list")
        yield Horizontal(id="pagination")
        yield Static("[r] Refresh [n] New thread [ ] Pages [q] Quit", id="app-footer", markup=False)

    def on_mount(self) -> None:
        self.dispatch_command(LoadBoard())

    def dispatch_command(self, command: Command) -> None:
        """Run a board command as a worker so it can wait on the network."""
        self.run_worker(self.board.dispatch(command), group="commands", exit_on_error=False)

    # --- rendering ---
    def schedule_rebuild(self) -> None:
        if self._rebuild_pending:
            return
        self._rebuild_pending = True
        self.call_later(self._rebuild)

    async def _rebuild(self) -> None:
        self._rebuild_pending = False
        tree = self.board.render()
        thread_list = self.query_one("#thread-list", VerticalScroll)
        pagination = self.query_one("#pagination", Horizontal)
        self._save_editor_drafts()
        focus = self._focused_field()
        await thread_list.remove_children()
        await pagination.remove_children()
        self._composers = {}

        for node in tree.children:
            if node.kind == "status":
                self.query_one("#status", Static).update(node.text)
            elif node.kind == "pagination":
                await pagination.mount_all([self._build(c) for c in node.children])
            elif node.kind == "thread-list":
                await thread_list.mount_all([self._build(c) for c in node.children])
            else:
                await thread_list.mount(self._build(node))

        select = self.query_one("#sort-select", Select)
        if select.value != self.board.state.sort.token:
            select.value = self.board.state.sort.token
        self._restore_focus(focus)

    def _save_editor_drafts(self) -> None:
        """Copy editor text still waiting in Changed messages into the drafts."""
        for editor in self.query(ReplyEditor):
            self.board.editing.update_draft(editor.reply_id, editor.text)

    def _focused_field(self):
        widget = self.focused
        if isinstance(widget, ReplyEditor):
            return ReplyEditor, widget.reply_id, widget.cursor_location
        if isinstance(widget, ComposerInput):
            return ComposerInput, widget.thread_id, widget.cursor_position
        return None

    def _restore_focus(self, focus) -> None:
        """Give focus back to the rebuilt copy of the field the user was in."""
        if focus is None:
            return
        kind, key, cursor = focus
        if kind is ReplyEditor:
            matches = [w for w in self.query(ReplyEditor) if w.reply_id == key]
        else:
            matches = [w for w in self.query(ComposerInput) if w.thread_id == key]
        if not matches:
            return
        widget = matches[0]
        if kind is ReplyEditor:
            widget.cursor_location = cursor
        else:
            widget.cursor_position = cursor
        widget.focus()

    def _build(self, node: Node) -> Widget:
        kind = node.kind
        if kind in _CONTAINERS:
            children = [self._build(c) for c in node.children]
            container = Horizontal if kind in _ROWS else Vertical
            return container(*children, classes=kind)
        if kind == "editor":
            return ReplyEditor(node)
        if kind == "composer":
            field = ComposerInput(node)
            self._composers[node.key] = field
            return Horizontal(field, *[self._build(c) for c in node.children], classes="composer")
        if kind == "reply-body":
            return ReplyBody(node)
        if node.command is not None:
            return CommandButton(node)
        return Static(node.text, classes=kind)

    # --- events ---
    def on_button_pressed(self, event: Button.Pressed) -> None:
        button = event.button
        if button.id == "refresh-button":
            self.action_refresh()
            return
        if button.id == "new-thread-button":
            self.action_new_thread()
            return
        command = getattr(button, "command", None)
        if command is None:
            return
        if isinstance(command, SubmitReply):
            field = self._composers.get(command.thread_id)
            command = SubmitReply(command.thread_id, field.value if field else "")
        self.dispatch_command(command)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if isinstance(event.input, ComposerInput):
            self.dispatch_command(SubmitReply(event.input.thread_id, event.value))

    def on_input_changed(self, event: Input.Changed) -> None:
        if isinstance(event.input, ComposerInput):
            self.board.composer.update_draft(event.input.thread_id, event.value)

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        area = event.text_area
        if isinstance(area, ReplyEditor):
            self.board.editing.update_draft(area.reply_id, area.text)

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id != "sort-select" or event.value == self.board.state.sort.token:
            return
        self.dispatch_command(ChangeSort(str(event.value)))

    # --- actions ---
    def action_refresh(self) -> None:
        self.dispatch_command(RefreshThreads())

    def action_new_thread(self) -> None:
        self.dispatch_command(NewThread())

    def action_prev_page(self) -> None:
        state = self.board.state
        if state.page > 1:
            self.dispatch_command(GoToPage(state.page - 1))

    def action_next_page(self) -> None:
        state = self.board.state
        if state.page < state.total_pages:
            self.dispatch_command(GoToPage(state.page + 1))


def main(argv=None):
    parser = argparse.ArgumentParser(prog="threadboard", description="Terminal client for the discussion board.")
    parser.add_argument("--url", help="board site root (overrides THREADBOARD_URL)")
    parser.add_argument("--cookie", help="session cookie value to store and use")
    parser.add_argument("--debug", action="store_true", help="write a debug log to ~/.threadboard_debug.log")
    args = parser.parse_args(argv)

    config = load_config()
    if args.url:
        config.base_url = args.url
    if args.debug:
        config.debug = True
    configure_logging(config.debug)

    if args.cookie:
        save_session_cookie(args.cookie)
    cookie = args.cookie or load_session_cookie()

    logger.debug("starting threadboard against %s", config.base_url)
    try:
        ThreadBoardApp(config, cookie).run()
    except Exception:
        logger.exception("Exception occurred while running ThreadBoardApp:")
        raise


if __name__ == "__main__":
    main()
