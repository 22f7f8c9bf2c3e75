"""Text and HTML for the cell.

The payload is built twice from the same lines: ``text`` joins them with
newlines (for logs, the CLI and tests) and ``markup`` escapes them and joins
them with ``<br>`` inside one styled ``div``.
"""

import html
from datetime import datetime, tzinfo
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from lastcommenter.models import Annotation, ResolvedPayload

BASE_STYLE = "padding: 4px; font-size: 11px;"
PAYLOAD_STYLE = f"{BASE_STYLE} color: #000000; line-height: 1.3;"
NEUTRAL_BACKGROUND = "transparent"

LOADING_MARKUP = f'<div style="{BASE_STYLE} color: #666;">Loading...</div>'
NO_ID_MARKUP = f'<div style="{BASE_STYLE} color: #ff0000;">No ID</div>'
ERROR_MARKUP = f'<div style="{BASE_STYLE} color: #ff0000;">Error</div>'

NO_EDITOR = "No editor"


def format_timestamp(value: datetime, fmt: str, timezone: Optional[str] = None) -> str:
    """Render a comment timestamp in the viewer's zone.

    Naive datetimes are taken to be UTC, which is what the list API returns.
    """
    zone: Optional[tzinfo] = ZoneInfo(timezone) if timezone else None
    if value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo("UTC"))
    return value.astimezone(zone).strftime(fmt)


def full_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return f"{first_name or ''} {last_name or ''}".strip()


def _block(lines: Sequence[str], background: Optional[str] = None) -> str:
    style = PAYLOAD_STYLE if background is None else f"{PAYLOAD_STYLE} background-color: {background};"
    body = "<br>".join(html.escape(line) for line in lines)
    return f'<div style="{style}">{body}</div>'


def annotation_lines(annotation: Annotation) -> list[str]:
    author = " ".join(part for part in (annotation.author_full_name, annotation.author_email) if part)
    return [f"at: {annotation.created_at}", f"by: {author}"]


def compose_annotation_payload(
    annotation: Annotation,
    is_admin_match: Optional[bool] = None,
    highlight_color: str = "#fff4ce",
) -> ResolvedPayload:
    """Payload for a row with a comment.

    When ``is_admin_match`` is None no administrator comparison was made and
    the block is unstyled. Otherwise an ``admin: yes/no`` line is added and a
    non-administrator comment gets ``highlight_color`` as background.
    """
    lines = annotation_lines(annotation)
    background = None
    if is_admin_match is not None:
        lines.append(f"admin: {'yes' if is_admin_match else 'no'}")
        background = NEUTRAL_BACKGROUND if is_admin_match else highlight_color
    return ResolvedPayload(
        text="\n".join(lines),
        markup=_block(lines, background),
        is_admin_match=is_admin_match,
        background=background,
    )


def compose_text_payload(text: str) -> ResolvedPayload:
    """Payload showing a single line of text (the last editor)."""
    return ResolvedPayload(text=text, markup=_block([text]))
