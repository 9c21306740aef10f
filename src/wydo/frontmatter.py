"""YAML front matter codec for cards, notes, boards and project index files."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any

import yaml

from wydo.models import DATE_FMT, Card, CardURL, parse_day

logger = logging.getLogger("wydo.frontmatter")

DELIMITER = "---"
PREVIEW_MAX = 60
PREVIEW_PARAGRAPHS = 2

H1_PATTERN = re.compile(r"^#\s+(.+?)\s*#*\s*$")
HEADING_PATTERN = re.compile(r"^#{1,6}(\s|$)")


def split_front_matter(text: str) -> tuple[str | None, str]:
    """Split ``text`` into (yaml block, body).

    Returns (None, text) when there is no front matter or it is unterminated.
    Leading newlines after the closing delimiter are not part of the body.
    """
    lines = text.split("\n")
    if not lines or lines[0].strip() != DELIMITER:
        return None, text

    for end in range(1, len(lines)):
        if lines[end].strip() == DELIMITER:
            block = "\n".join(lines[1:end])
            body = "\n".join(lines[end + 1 :]).lstrip("\n")
            return block, body
    return None, text


def parse_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Parse front matter into a dict, degrading to {} on malformed YAML."""
    block, body = split_front_matter(text)
    if block is None:
        return {}, body
    try:
        meta = yaml.safe_load(block)
    except yaml.YAMLError as e:
        logger.debug("Ignoring malformed front matter: %s", e)
        return {}, text
    if not isinstance(meta, dict):
        return {}, body
    return meta, body


def render_front_matter(meta: dict[str, Any], body: str) -> str:
    """Emit ``meta`` as a front matter block followed by ``body``.

    An empty ``meta`` emits the body alone.
    """
    if not meta:
        return body
    yaml_str = yaml.dump(meta, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return "\n".join([DELIMITER, yaml_str.rstrip(), DELIMITER, "", body])


def coerce_date(value: Any) -> date | None:
    """Read a yyyy-mm-dd value; YAML may already have produced a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_day(value.strip())
    return None


def coerce_datetime(value: Any) -> datetime | None:
    """Read an RFC 3339 timestamp."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def format_datetime(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None and str(v)]


def _urls(meta: dict[str, Any]) -> list[CardURL]:
    urls: list[CardURL] = []
    legacy = meta.get("url")
    if isinstance(legacy, str) and legacy:
        urls.append(CardURL(url=legacy))
    raw = meta.get("urls")
    if isinstance(raw, list):
        for entry in raw:
            if isinstance(entry, dict) and entry.get("url"):
                urls.append(CardURL(url=str(entry["url"]), label=str(entry.get("label") or "")))
            elif isinstance(entry, str) and entry:
                urls.append(CardURL(url=entry))
    return urls


def extract_title(body: str, default: str = "Untitled") -> str:
    """First H1 heading text, else ``default``."""
    for line in body.split("\n"):
        match = H1_PATTERN.match(line)
        if match:
            return match.group(1)
    return default


def extract_preview(body: str) -> str:
    """First two non-heading paragraphs joined with a space, cut at 60 chars."""
    paragraphs: list[str] = []
    current: list[str] = []

    def flush() -> None:
        if current:
            paragraphs.append(" ".join(current))
            current.clear()

    for line in body.split("\n"):
        stripped = line.strip()
        if not stripped:
            flush()
        elif HEADING_PATTERN.match(stripped):
            flush()
        else:
            current.append(stripped)
        if len(paragraphs) >= PREVIEW_PARAGRAPHS:
            break
    flush()

    preview = " ".join(paragraphs[:PREVIEW_PARAGRAPHS])
    if len(preview) > PREVIEW_MAX:
        preview = preview[: PREVIEW_MAX - 3] + "..."
    return preview


def parse_card(text: str, filename: str) -> Card:
    """Build a Card from a card file's content."""
    meta, body = parse_front_matter(text)
    priority = meta.get("priority")
    if isinstance(priority, bool) or not isinstance(priority, int):
        priority = 0
    return Card(
        filename=filename,
        title=extract_title(body),
        tags=_string_list(meta.get("tags")),
        projects=_string_list(meta.get("projects")),
        urls=_urls(meta),
        preview=extract_preview(body),
        content=body,
        due_date=coerce_date(meta.get("due")),
        scheduled_date=coerce_date(meta.get("scheduled")),
        date_completed=coerce_datetime(meta.get("date_completed")),
        priority=max(priority, 0),
        archived=meta.get("archived") is True,
    )


def card_front_matter(card: Card) -> dict[str, Any]:
    """Non-empty card fields, in file order."""
    meta: dict[str, Any] = {}
    if card.tags:
        meta["tags"] = list(card.tags)
    if card.projects:
        meta["projects"] = list(card.projects)
    if card.urls:
        meta["urls"] = [
            {"label": u.label, "url": u.url} if u.label else {"url": u.url} for u in card.urls
        ]
    if card.due_date:
        meta["due"] = card.due_date.strftime(DATE_FMT)
    if card.scheduled_date:
        meta["scheduled"] = card.scheduled_date.strftime(DATE_FMT)
    if card.date_completed:
        meta["date_completed"] = format_datetime(card.date_completed)
    if card.priority > 0:
        meta["priority"] = card.priority
    if card.archived:
        meta["archived"] = True
    return meta


def format_card(card: Card) -> str:
    """Serialize a Card to its file content."""
    return render_front_matter(card_front_matter(card), card.content)
