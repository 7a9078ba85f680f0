"""Tests for the Textual front end, driven through its pilot."""

import asyncio
import webbrowser
from types import SimpleNamespace

import pytest

from threadboard.commands import BeginEdit, ToggleReplies
from threadboard.main import AppHooks, ReplyEditor, ThreadBoardApp
from threadboard.session_guard import SESSION_EXPIRED_MESSAGE


@pytest.fixture
def app(config, server):
    server.add_thread(1)
    server.add_reply(1, body="hello")
    server.add_thread(2)
    server.add_reply(2, body="other")
    return ThreadBoardApp(config, http=server)


async def _settle(app, pilot):
    await app.workers.wait_for_complete()
    await pilot.pause()
    await pilot.pause()


async def _open_editor(app, pilot, reply_id):
    await _settle(app, pilot)
    await app.board.dispatch(ToggleReplies("1"))
    await app.board.dispatch(BeginEdit(reply_id))
    await _settle(app, pilot)
    app.query_one(ReplyEditor).focus()
    await pilot.pause()


def test_editor_keeps_focus_when_another_thread_changes(app, server):
    reply_id = str(server.replies["1"][0]["id"])

    async def scenario():
        async with app.run_test() as pilot:
            await _open_editor(app, pilot, reply_id)
            await pilot.press("x", "y", "z")
            await app.board.dispatch(ToggleReplies("2"))
            await _settle(app, pilot)
            focused = app.focused
            return focused, focused.cursor_location, app.board.state.edits.get(reply_id)

    focused, cursor, session = asyncio.run(scenario())

    assert isinstance(focused, ReplyEditor)
    assert focused.reply_id == reply_id
    assert focused.text == "xyzhello"
    assert cursor == (0, 3)
    assert session.draft == "xyzhello"


def test_editor_breaks_line_at_cursor_and_saves_on_enter(app, server):
    reply_id = str(server.replies["1"][0]["id"])

    async def scenario():
        async with app.run_test() as pilot:
            await _open_editor(app, pilot, reply_id)
            await pilot.press("x", "shift+enter")
            await pilot.press("enter")
            await _settle(app, pilot)
            return app.board.store.reply(reply_id), app.query(ReplyEditor)

    reply, editors = asyncio.run(scenario())

    assert server.calls_of("edit")[0]["json"]["body"] == "x\nhello"
    assert reply.body == "x\nhello"
    assert reply.edited
    assert len(editors) == 0


def test_expiry_notice_is_printed_after_exit(monkeypatch):
    opened = []
    exits = []
    monkeypatch.setattr(webbrowser, "open", opened.append)
    stub = SimpleNamespace(
        board=SimpleNamespace(guard=SimpleNamespace(halted=True)),
        exit=lambda result=None, return_code=0, message=None: exits.append(message),
    )

    AppHooks(stub).navigate("http://board.test/login.php")

    assert opened == ["http://board.test/login.php"]
    assert exits[0].splitlines() == [SESSION_EXPIRED_MESSAGE, "Continue at http://board.test/login.php"]


def test_plain_navigation_has_no_expiry_notice(monkeypatch):
    exits = []
    monkeypatch.setattr(webbrowser, "open", lambda url: True)
    stub = SimpleNamespace(
        board=SimpleNamespace(guard=SimpleNamespace(halted=False)),
        exit=lambda result=None, return_code=0, message=None: exits.append(message),
    )

    AppHooks(stub).navigate("http://board.test/new_thread.php")

    assert exits == ["Continue at http://board.test/new_thread.php"]
