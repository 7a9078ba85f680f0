"""Tests for the render tree built from board state."""

import asyncio

from conftest import make_response
from threadboard.commands import BeginEdit, EditThread, GoToPage, LoadBoard, ToggleReplies
from threadboard.data_models import BoardState
from threadboard.render import EMPTY_BOARD, render_board
from threadboard.store import EntityStore


def test_empty_state_renders_placeholder():
    tree = render_board(BoardState(), EntityStore())

    assert [n.text for n in tree.find("placeholder")] == [EMPTY_BOARD]
    assert len(tree.find("pagination")[0].children) == 1


def test_malformed_list_renders_no_threads_and_no_controls(board, server):
    server.fail["list"] = make_response(200, {"threads": "oops", "totalPages": 5})

    asyncio.run(board.dispatch(LoadBoard()))

    tree = board.render()
    assert tree.find("thread") == ()
    assert board.state.total_pages == 1
    assert tree.find("pagination")[0].children == ()


def test_pagination_nodes_carry_page_commands(board, server):
    server.total_pages = 3
    asyncio.run(board.dispatch(LoadBoard()))

    pagination = board.render().find("pagination")[0]

    assert [n.kind for n in pagination.children] == ["page-current", "page-link", "page-link", "page-link"]
    assert [n.command for n in pagination.find("page-link")] == [GoToPage(2), GoToPage(3), GoToPage(2)]


def test_user_text_is_escaped(board, server):
    server.add_thread(1, title="[blink]hi[/blink]", username="[red]x")
    asyncio.run(board.dispatch(LoadBoard()))

    tree = board.render()

    assert tree.find("title")[0].text == "\\[blink]hi\\[/blink]"
    assert "\\[red]x" in tree.find("meta")[0].text


def test_owner_sees_edit_and_delete(board, server):
    server.add_thread(1, user_id=7)
    server.add_thread(2, user_id=8)
    asyncio.run(board.dispatch(LoadBoard()))

    tree = board.render()
    threads = {n.key: n for n in tree.find("thread")}

    assert [b.command for b in threads["1"].find("button") if b.text == "Edit"] == [EditThread("1")]
    assert len(threads["1"].find("delete")) == 1
    assert [b.text for b in threads["2"].find("button")] == ["Reply"]
    assert threads["2"].find("delete") == ()


def test_no_owner_controls_without_user_id(board, server):
    server.user_id = None
    server.add_thread(1, user_id=7)
    asyncio.run(board.dispatch(LoadBoard()))

    assert board.render().find("delete") == ()


def test_edited_thread_shows_marker(board, server):
    server.add_thread(1, updated_at="2024-02-01 09:00:00")
    server.add_thread(2)
    asyncio.run(board.dispatch(LoadBoard()))

    threads = {n.key: n for n in board.render().find("thread")}

    assert threads["1"].find("edited")[0].text == "(edited: 2024-02-01 09:00:00)"
    assert threads["2"].find("edited") == ()


def test_badge_text_follows_state(board, server):
    server.add_thread(1)
    server.add_reply(1)
    server.add_reply(1)
    asyncio.run(board.dispatch(LoadBoard()))
    assert board.render().find("badge")[0].text == "2 replies"

    asyncio.run(board.dispatch(ToggleReplies("1")))

    assert board.render().find("badge")[0].text == "Hide replies"


def test_owned_reply_body_starts_edit(board, server):
    server.add_thread(1)
    mine = server.add_reply(1, user_id=7)
    theirs = server.add_reply(1, user_id=8)
    asyncio.run(board.dispatch(LoadBoard()))
    asyncio.run(board.dispatch(ToggleReplies("1")))

    bodies = {n.key: n for n in board.render().find("reply-body")}

    assert bodies[str(mine["id"])].command == BeginEdit(str(mine["id"]))
    assert bodies[str(theirs["id"])].command is None


def test_listing_error_is_rendered(board, server):
    server.fail["list"] = make_response(500, {"error": "down"})

    asyncio.run(board.dispatch(LoadBoard()))

    tree = board.render()
    assert tree.find("error")[0].text == "Failed to load: HTTP error: 500"
    assert tree.find("thread-list") == ()
