"""
Data models for the threadboard client.
These models define the structure of data used throughout the app.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set


class SortField(str, Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortOrder:
    """Sort field plus direction, persisted as a single token."""
    field: SortField = SortField.CREATED_AT
    direction: SortDirection = SortDirection.DESC

    @property
    def token(self) -> str:
        return f"{self.field.value}_{self.direction.value}"

    @classmethod
    def from_token(cls, token: str) -> "SortOrder":
        """Parse "created_at_desc" style tokens.

        The direction is the last underscore-separated part, the field is
        everything before it. Raises ValueError for anything outside the
        closed set of fields and directions.
        """
        field_name, _, direction = (token or "").strip().rpartition("_")
        try:
            return cls(SortField(field_name), SortDirection(direction))
        except ValueError:
            raise ValueError(f"unknown sort token: {token!r}") from None


# (token, label) pairs offered by the sort selector
SORT_CHOICES = [
    ("created_at_desc", "Newest"),
    ("created_at_asc", "Oldest"),
    ("updated_at_desc", "Recently updated"),
]


@dataclass
class Thread:
    """Represents a top-level post starting a discussion."""
    id: str
    user_id: Optional[str]
    username: str
    title: str
    body: str
    created_at: str
    updated_at: str
    reply_count: int = 0

    @property
    def edited(self) -> bool:
        return bool(self.updated_at) and self.updated_at != self.created_at


@dataclass
class Reply:
    """Represents a reply attached to exactly one thread.

    `body` is the raw newline-preserving text used to seed the editor,
    `display_body` is the sanitized text shown in the view.
    """
    id: str
    thread_id: str
    user_id: Optional[str]
    username: str
    body: str
    display_body: str
    created_at: str
    updated_at: str
    edited: bool = False


class Visibility(str, Enum):
    COLLAPSED = "collapsed"
    LOADING = "loading"
    PARTIAL = "expanded-partial"
    FULL = "expanded-full"

    @property
    def expanded(self) -> bool:
        return self in (Visibility.PARTIAL, Visibility.FULL)


@dataclass
class ThreadView:
    """UI state of one thread's reply subtree."""
    visibility: Visibility = Visibility.COLLAPSED
    show_all: bool = False  # "show all" affordance present
    show_all_pending: bool = False
    error: Optional[str] = None


class EditPhase(str, Enum):
    EDITING = "editing"
    SAVING = "saving"


@dataclass
class EditSession:
    """One active inline edit of a reply body."""
    reply_id: str
    original: str
    draft: str
    phase: EditPhase = EditPhase.EDITING


@dataclass
class BoardState:
    """Session and view state shared by every controller by reference."""
    current_user_id: Optional[str] = None
    sort: SortOrder = field(default_factory=SortOrder)
    page: int = 1
    total_pages: int = 1
    listing_error: Optional[str] = None
    listing_malformed: bool = False
    status: str = ""
    generation: int = 0
    list_seq: int = 0
    threads: Dict[str, ThreadView] = field(default_factory=dict)
    edits: Dict[str, EditSession] = field(default_factory=dict)
    deleting: Set[str] = field(default_factory=set)
    submitting: Set[str] = field(default_factory=set)
    drafts: Dict[str, str] = field(default_factory=dict)

    def thread_view(self, thread_id: str) -> ThreadView:
        return self.threads.setdefault(thread_id, ThreadView())

    def is_owner(self, user_id: Optional[str]) -> bool:
        """Ownership resolves to False until the server has named the user."""
        if self.current_user_id is None or user_id is None:
            return False
        return str(user_id) == str(self.current_user_id)


@dataclass
class ThreadPage:
    """One page of the thread list as reported by the server."""
    threads: List[Thread]
    total_pages: int = 1
    current_page: int = 1
    current_user_id: Optional[str] = None
    malformed: bool = False


@dataclass
class ReplySet:
    """All replies of a thread plus the authoritative count."""
    replies: List[Reply]
    count: int
