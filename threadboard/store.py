"""In-memory copies of the threads and replies currently on screen."""
from __future__ import annotations

from typing import Dict, List, Optional

from .data_models import Reply, Thread


class EntityStore:
    """Threads and replies keyed by id.

    The server owns the data; this is the transient copy for one page
    load. `counts` holds the latest known reply count of each thread,
    which may differ from the number of replies loaded.
    """

    def __init__(self) -> None:
        self.threads: Dict[str, Thread] = {}
        self.order: List[str] = []
        self.replies: Dict[str, Reply] = {}
        self.reply_ids: Dict[str, List[str]] = {}
        self.counts: Dict[str, int] = {}

    def replace_page(self, threads: List[Thread]) -> None:
        self.threads = {t.id: t for t in threads}
        self.order = [t.id for t in threads]
        self.replies = {}
        self.reply_ids = {}
        self.counts = {t.id: t.reply_count for t in threads}

    def page_threads(self) -> List[Thread]:
        return [self.threads[tid] for tid in self.order]

    def thread(self, thread_id: str) -> Optional[Thread]:
        return self.threads.get(thread_id)

    def reply(self, reply_id: str) -> Optional[Reply]:
        return self.replies.get(reply_id)

    def replies_for(self, thread_id: str) -> List[Reply]:
        return [self.replies[rid] for rid in self.reply_ids.get(thread_id, [])]

    def count(self, thread_id: str) -> int:
        return self.counts.get(thread_id, 0)

    def set_count(self, thread_id: str, count: int) -> None:
        self.counts[thread_id] = max(int(count), 0)

    def set_replies(self, thread_id: str, replies: List[Reply], count: int) -> None:
        for rid in self.reply_ids.get(thread_id, []):
            self.replies.pop(rid, None)
        self.reply_ids[thread_id] = [r.id for r in replies]
        for reply in replies:
            self.replies[reply.id] = reply
        self.set_count(thread_id, count)

    def remove_thread(self, thread_id: str) -> Optional[Thread]:
        thread = self.threads.pop(thread_id, None)
        if thread_id in self.order:
            self.order.remove(thread_id)
        for rid in self.reply_ids.pop(thread_id, []):
            self.replies.pop(rid, None)
        self.counts.pop(thread_id, None)
        return thread

    def remove_reply(self, reply_id: str) -> Optional[Reply]:
        reply = self.replies.pop(reply_id, None)
        if reply is not None:
            ids = self.reply_ids.get(reply.thread_id, [])
            if reply_id in ids:
                ids.remove(reply_id)
        return reply

    def apply_edit(self, reply_id: str, raw: str, display: str) -> Optional[Reply]:
        reply = self.replies.get(reply_id)
        if reply is None:
            return None
        reply.body = raw
        reply.display_body = display
        reply.edited = True
        return reply
