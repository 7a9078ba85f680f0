"""Text helpers shared by the fetcher, the controllers and the render layer."""
import html
import re

from rich.markup import escape

_BR = re.compile(r"<br\s*/?>", re.IGNORECASE)


def sanitize_body(raw) -> str:
    """Turn user text into something safe to show as console markup."""
    if raw is None:
        return ""
    return escape(str(raw))


def display_from_server(new_body: str) -> str:
    """Convert a body the server already HTML-escaped into display text.

    Line breaks may come back as <br> tags or raw newlines; both end up as
    newlines.
    """
    text = _BR.sub("\n", new_body or "")
    return sanitize_body(html.unescape(text))


def reply_count_label(count: int) -> str:
    return f"{count} reply" if count == 1 else f"{count} replies"
