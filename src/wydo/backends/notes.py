"""Dated markdown notes."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path

from wydo.frontmatter import coerce_date, parse_front_matter
from wydo.models import DATE_FMT, Note

logger = logging.getLogger("wydo.notes")

DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


def title_from_filename(filename: str) -> str:
    """'2026-02-14-team-sync.md' -> 'team sync'."""
    name = filename[:-3] if filename.endswith(".md") else filename
    match = DATE_PATTERN.search(name)
    if match:
        after = name[match.end() :]
        if after.startswith("-"):
            after = after[1:]
        if after:
            name = after
    name = name.replace("-", " ").replace("_", " ")
    return name or "Note"


def parse_note_file(path: Path, root: Path) -> Note | None:
    """Load a note, or None when it is unreadable or has no resolvable date."""
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Skipping unreadable note %s: %s", path, e)
        return None

    meta, _ = parse_front_matter(content)
    note_date = coerce_date(meta.get("date"))
    title = meta.get("title")
    title = str(title) if title else ""

    if note_date is None:
        match = DATE_PATTERN.search(path.name)
        if match:
            try:
                note_date = datetime.strptime(match.group(0), DATE_FMT).date()
            except ValueError:
                note_date = None
    if note_date is None:
        return None

    try:
        rel_path = str(path.relative_to(root))
    except ValueError:
        rel_path = path.name

    return Note(
        title=title or title_from_filename(path.name),
        file_path=path,
        rel_path=rel_path,
        date=note_date,
    )


def load_notes(paths: list[Path], root: Path) -> list[Note]:
    """Load dated notes from scanner note candidates, ignoring undated ones."""
    notes = []
    for path in paths:
        note = parse_note_file(path, root)
        if note is not None:
            notes.append(note)
    return notes
