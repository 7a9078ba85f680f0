"""
Render layer: pure functions from (BoardState, EntityStore) to a Node tree.

The tree is a disposable projection. It holds no state of its own; the
Textual app rebuilds its widgets from a fresh tree after every transition.
Text of kind "editor" and "composer" is raw user text, every other text is
already escaped for console markup.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .commands import (
    BeginEdit,
    CancelEdit,
    Command,
    DeletePost,
    EditThread,
    GoToPage,
    SaveEdit,
    ShowAllReplies,
    SubmitReply,
    ToggleReplies,
)
from .data_models import BoardState, EditPhase, Reply, Thread, ThreadView, Visibility
from .formatting import reply_count_label, sanitize_body
from .pagination import page_controls
from .replies import visible_replies
from .store import EntityStore

EMPTY_BOARD = "No threads yet."
NO_REPLIES = "No replies yet."
LOADING_REPLIES = "Loading replies..."


@dataclass(frozen=True)
class Node:
    kind: str
    key: str = ""
    text: str = ""
    enabled: bool = True
    command: Optional[Command] = None
    children: Tuple["Node", ...] = field(default_factory=tuple)

    def find(self, kind: str) -> Tuple["Node", ...]:
        """Every descendant (and self) of the given kind, depth first."""
        found = (self,) if self.kind == kind else ()
        for child in self.children:
            found += child.find(kind)
        return found


def render_board(state: BoardState, store: EntityStore) -> Node:
    children = [Node("status", text=sanitize_body(state.status))]
    if state.listing_error is not None:
        children.append(Node("error", text=sanitize_body(state.listing_error)))
        children.append(Node("pagination"))
    else:
        threads = store.page_threads()
        if threads:
            list_node = Node("thread-list", children=tuple(
                render_thread(t, state, store) for t in threads
            ))
        else:
            list_node = Node("thread-list", children=(Node("placeholder", text=EMPTY_BOARD),))
        children.append(list_node)
        children.append(render_pagination(state))
    return Node("board", children=tuple(children))


def render_pagination(state: BoardState) -> Node:
    if state.listing_malformed:
        return Node("pagination")
    controls = []
    for control in page_controls(state.total_pages, state.page):
        if control.current:
            controls.append(Node("page-current", key=str(control.page), text=control.label))
        else:
            controls.append(Node(
                "page-link", key=str(control.page), text=control.label,
                command=GoToPage(control.page),
            ))
    return Node("pagination", children=tuple(controls))


def render_thread(thread: Thread, state: BoardState, store: EntityStore) -> Node:
    view = _view(state, thread.id)
    count = store.count(thread.id)

    header = [
        Node("meta", text=f"Posted by {sanitize_body(thread.username)}"),
        Node("date", text=sanitize_body(thread.created_at)),
    ]
    if thread.edited:
        header.append(Node("edited", text=f"(edited: {sanitize_body(thread.updated_at)})"))

    if view.visibility.expanded and count > 0:
        badge_text = "Hide replies"
    else:
        badge_text = reply_count_label(count)
    actions = [Node(
        "badge", key=thread.id, text=badge_text,
        enabled=view.visibility is not Visibility.LOADING,
        command=ToggleReplies(thread.id),
    )]
    if state.is_owner(thread.user_id):
        actions.append(Node("button", key=f"edit-{thread.id}", text="Edit", command=EditThread(thread.id)))
        actions.append(_delete_button(thread.id, state))

    children = [
        Node("thread-header", children=tuple(header)),
        Node("title", text=sanitize_body(thread.title)),
        Node("body", text=sanitize_body(thread.body)),
        Node("thread-actions", children=tuple(actions)),
    ]
    if view.error:
        children.append(Node("error", text=sanitize_body(view.error)))
    if view.visibility is not Visibility.COLLAPSED:
        children.append(render_replies(thread.id, state, store))

    submitting = thread.id in state.submitting
    children.append(Node(
        "composer", key=thread.id, text=state.drafts.get(thread.id, ""),
        enabled=not submitting,
        children=(Node(
            "button", key=f"reply-{thread.id}", text="Sending..." if submitting else "Reply",
            enabled=not submitting, command=SubmitReply(thread.id),
        ),),
    ))
    return Node("thread", key=thread.id, children=tuple(children))


def render_replies(thread_id: str, state: BoardState, store: EntityStore) -> Node:
    view = _view(state, thread_id)
    if view.visibility is Visibility.LOADING:
        return Node("replies", key=thread_id, children=(Node("placeholder", text=LOADING_REPLIES),))
    if store.count(thread_id) == 0 and not store.replies_for(thread_id):
        return Node("replies", key=thread_id, children=(Node("placeholder", text=NO_REPLIES),))

    children = []
    if view.show_all and view.visibility is Visibility.PARTIAL:
        children.append(Node(
            "show-all", key=thread_id, text="Show all replies",
            enabled=not view.show_all_pending, command=ShowAllReplies(thread_id),
        ))
    for reply in visible_replies(store.replies_for(thread_id), view):
        children.append(render_reply(reply, state))
    return Node("replies", key=thread_id, children=tuple(children))


def render_reply(reply: Reply, state: BoardState) -> Node:
    owner = state.is_owner(reply.user_id)
    session = state.edits.get(reply.id)

    if session is not None:
        saving = session.phase is EditPhase.SAVING
        body = Node("editor", key=reply.id, text=session.draft, enabled=not saving)
    else:
        body = Node("reply-body", key=reply.id, text=reply.display_body,
                    command=BeginEdit(reply.id) if owner else None)

    meta = [Node("meta", text=f"Posted by {sanitize_body(reply.username)}")]
    if reply.edited:
        meta.append(Node("edited", text="(edited)"))
    meta.append(Node("date", text=f"Posted at {sanitize_body(reply.created_at)}"))

    buttons = []
    if owner:
        buttons.append(Node(
            "button", key=f"edit-{reply.id}", text="Edit",
            enabled=session is None, command=BeginEdit(reply.id),
        ))
        if session is not None:
            buttons.append(Node(
                "button", key=f"save-{reply.id}", text="Save",
                enabled=session.phase is EditPhase.EDITING, command=SaveEdit(reply.id),
            ))
            buttons.append(Node(
                "button", key=f"cancel-{reply.id}", text="Cancel",
                enabled=session.phase is EditPhase.EDITING, command=CancelEdit(reply.id),
            ))
        buttons.append(_delete_button(reply.id, state))

    return Node("reply", key=reply.id, children=(
        body,
        Node("reply-meta", children=tuple(meta)),
        Node("reply-actions", children=tuple(buttons)),
    ))


def _delete_button(post_id: str, state: BoardState) -> Node:
    busy = post_id in state.deleting
    return Node(
        "delete", key=post_id, text="Deleting..." if busy else "Delete",
        enabled=not busy, command=DeletePost(post_id),
    )


def _view(state: BoardState, thread_id: str) -> ThreadView:
    return state.threads.get(thread_id) or ThreadView()
