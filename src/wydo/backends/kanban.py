"""Markdown board store: board.md index plus cards/*.md."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from wydo.frontmatter import format_card, parse_card, parse_front_matter, render_front_matter
from wydo.models import Board, Card, Column

logger = logging.getLogger("wydo.kanban")

BOARD_FILE = "board.md"
CARDS_DIR = "cards"
CARD_LINK_PREFIXES = ("./cards/", "cards/")

H1_PATTERN = re.compile(r"^#\s+(.+?)\s*$")
H2_PATTERN = re.compile(r"^##\s+(.+?)\s*$")
LINK_PATTERN = re.compile(r"\[([^\]]*)\]\(\s*<?([^)\s>]+)>?(?:\s+\"[^\"]*\")?\s*\)")
FENCE_PATTERN = re.compile(r"^(```|~~~)")


def read_card(card_path: Path) -> Card:
    """Read a card file. Raises OSError when the file is unreadable."""
    content = card_path.read_text(encoding="utf-8")
    return parse_card(content, card_path.name)


def write_card(card: Card, card_path: Path) -> None:
    card_path.parent.mkdir(parents=True, exist_ok=True)
    card_path.write_text(format_card(card), encoding="utf-8")


def read_board(board_path: Path) -> Board:
    """Read ``<board_path>/board.md`` and every card it links to.

    Raises OSError when board.md itself is unreadable. Card links that fail
    to load, or that appear before the first column, are skipped.
    """
    board_path = Path(board_path)
    content = (board_path / BOARD_FILE).read_text(encoding="utf-8")
    meta, body = parse_front_matter(content)

    board = Board(name="", path=board_path, archived=meta.get("archived") is True)
    current: Column | None = None
    in_fence = False

    for line in body.split("\n"):
        if FENCE_PATTERN.match(line.strip()):
            in_fence = not in_fence
            continue
        if in_fence:
            continue

        h2 = H2_PATTERN.match(line)
        if h2:
            current = Column(name=h2.group(1))
            board.columns.append(current)
            continue

        h1 = H1_PATTERN.match(line)
        if h1:
            if not board.name:
                board.name = h1.group(1)
            continue

        for _, dest in LINK_PATTERN.findall(line):
            if not dest.startswith(CARD_LINK_PREFIXES):
                continue
            if current is None:
                logger.debug("Dropping card link outside any column: %s", dest)
                continue
            card_path = board_path / dest
            try:
                current.cards.append(read_card(card_path))
            except (OSError, UnicodeDecodeError) as e:
                logger.debug("Skipping unreadable card %s: %s", card_path, e)

    if not board.name:
        board.name = board_path.name
    return board


def format_board(board: Board) -> str:
    """Render board.md. Card content lives only in the card files."""
    parts = [f"# {board.name}\n\n"]
    for column in board.columns:
        parts.append(f"## {column.name}\n\n")
        for card in column.cards:
            parts.append(f"[{card.title}](./{CARDS_DIR}/{card.filename})\n\n")
    body = "".join(parts)
    if board.archived:
        return render_front_matter({"archived": True}, body)
    return body


def write_board(board: Board) -> None:
    board.path.mkdir(parents=True, exist_ok=True)
    (board.path / BOARD_FILE).write_text(format_board(board), encoding="utf-8")


def is_board_dir(path: Path) -> bool:
    return (path / BOARD_FILE).is_file()
