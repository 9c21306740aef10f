"""Board, column and card operations.

Every structural change is written to disk before returning, so the
in-memory Board and its board.md never disagree after a successful call.
"""

from __future__ import annotations

import logging
import re
import shutil
from datetime import date, datetime
from pathlib import Path

from wydo.backends.kanban import read_board, read_card, write_board, write_card
from wydo.errors import BoardError
from wydo.models import Board, Card, CardURL, Column

logger = logging.getLogger("wydo.kanban")

DEFAULT_COLUMNS = ("To Do", "In Progress", "Done")
MAX_COLUMN_NAME = 50
CARD_FIELDS = frozenset(
    {"tags", "projects", "urls", "due_date", "scheduled_date", "priority", "archived"}
)


# Filenames


def sanitize_name(name: str) -> str:
    """Board directory name: 'My Board!' -> 'my-board'."""
    name = name.lower().replace(" ", "-")
    name = re.sub(r"[^a-z0-9-]+", "", name)
    name = re.sub(r"-+", "-", name)
    return name.strip("-")


def to_snake_case(title: str) -> str:
    """Card filename base: 'My Card Title!' -> 'my_card_title'."""
    s = title.lower().replace(" ", "_").replace("-", "_")
    s = "".join(ch for ch in s if ch.isalnum() or ch == "_")
    s = re.sub(r"_+", "_", s).strip("_")
    return s or "card"


def unique_filename(base: str, directory: Path, current: str = "") -> str:
    """First free name among base.md, base_2.md, base_3.md, ...

    ``current`` is the card's own filename and counts as free.
    """
    candidate = f"{base}.md"
    counter = 2
    while (directory / candidate).exists() and candidate != current:
        candidate = f"{base}_{counter}.md"
        counter += 1
    return candidate


# Boards


def create_board(root: Path, name: str) -> Board:
    """Create ``<root>/<sanitized name>/`` with the default columns."""
    dir_name = sanitize_name(name)
    if not dir_name:
        raise BoardError(f"Invalid board name: {name!r}")
    board_path = root / dir_name
    if board_path.exists():
        raise BoardError(f"Board already exists: {board_path}")

    (board_path / "cards").mkdir(parents=True)
    board = Board(name=name, path=board_path, columns=[Column(name=c) for c in DEFAULT_COLUMNS])
    write_board(board)
    logger.info("Created board %s at %s", name, board_path)
    return board


def delete_board(board: Board) -> None:
    shutil.rmtree(board.path)
    logger.info("Deleted board %s", board.path)


def toggle_board_archive(board: Board) -> None:
    board.archived = not board.archived
    write_board(board)


# Columns


def validate_column_name(name: str) -> str:
    """Return the trimmed name. Raises BoardError if empty or too long."""
    trimmed = name.strip()
    if not trimmed:
        raise BoardError("Column name cannot be empty")
    if len(trimmed) > MAX_COLUMN_NAME:
        raise BoardError(f"Column name too long (max {MAX_COLUMN_NAME} characters)")
    return trimmed


def _check_column_index(board: Board, index: int, label: str = "column") -> Column:
    if index < 0 or index >= len(board.columns):
        raise BoardError(f"Invalid {label} index: {index}")
    return board.columns[index]


def _check_unique_column(board: Board, name: str, skip: int = -1) -> None:
    for idx, column in enumerate(board.columns):
        if idx != skip and column.name.lower() == name.lower():
            raise BoardError(f"Column name already exists: {name}")


def rename_column(board: Board, index: int, new_name: str) -> None:
    column = _check_column_index(board, index)
    name = validate_column_name(new_name)
    ok, reason = board.can_rename_column(index)
    if not ok:
        raise BoardError(reason[:1].upper() + reason[1:])
    _check_unique_column(board, name, skip=index)
    column.name = name
    write_board(board)


def add_column(board: Board, name: str, position: int = -1) -> Column:
    """Insert a column at ``position``; -1 inserts before the last column."""
    name = validate_column_name(name)
    _check_unique_column(board, name)
    if position == -1:
        position = max(len(board.columns) - 1, 0)
    if position < 0 or position > len(board.columns):
        raise BoardError(f"Invalid position: {position}")

    column = Column(name=name)
    board.columns.insert(position, column)
    write_board(board)
    return column


def delete_column(board: Board, index: int) -> None:
    """Delete a column, moving its cards to the left neighbour (else the right)."""
    column = _check_column_index(board, index)
    ok, reason = board.can_delete_column(index)
    if not ok:
        raise BoardError(reason[:1].upper() + reason[1:])

    if column.cards:
        target = index - 1 if index > 0 else index + 1
        board.columns[target].cards.extend(column.cards)
    del board.columns[index]
    write_board(board)


def reorder_column(board: Board, from_index: int, to_index: int) -> None:
    """Move a column in front of the column currently at ``to_index``.

    Done cannot move, and nothing can move past a trailing Done.
    """
    column = _check_column_index(board, from_index, "source")
    _check_column_index(board, to_index, "destination")
    if from_index == to_index:
        return
    if board.is_done_column(column.name):
        raise BoardError("Cannot move the Done column")

    last = len(board.columns) - 1
    if board.is_done_column(board.columns[last].name) and to_index >= last:
        raise BoardError("Cannot move column past Done")

    del board.columns[from_index]
    if from_index < to_index:
        to_index -= 1
    board.columns.insert(to_index, column)
    write_board(board)


# Cards


def _card_at(board: Board, col_index: int, card_index: int) -> Card:
    column = _check_column_index(board, col_index)
    if card_index < 0 or card_index >= len(column.cards):
        raise BoardError(f"Invalid card index: {card_index}")
    return column.cards[card_index]


def create_card(board: Board, column_name: str, title: str = "") -> Card:
    """Create a card file and append it to ``column_name``."""
    column = board.get_column(column_name)
    if column is None:
        raise BoardError(f"Column not found: {column_name}")

    title = title.strip() or "Untitled"
    board.cards_dir.mkdir(parents=True, exist_ok=True)
    filename = unique_filename(to_snake_case(title), board.cards_dir)
    card = Card(filename=filename, title=title, content=f"# {title}\n")
    write_card(card, board.card_path(card))

    column.cards.append(card)
    write_board(board)
    return card


def reload_card(board: Board, filename: str) -> Card:
    return read_card(board.cards_dir / filename)


def reload_board(board: Board) -> Board:
    return read_board(board.path)


def sync_card_filename(board: Board, col_index: int, card_index: int) -> str:
    """Rename a card file to match its (possibly edited) title.

    Re-reads the card from disk first. Returns the current filename.
    """
    card = _card_at(board, col_index, card_index)
    updated = read_card(board.card_path(card))
    expected = unique_filename(to_snake_case(updated.title), board.cards_dir, card.filename)
    if expected == card.filename:
        board.columns[col_index].cards[card_index] = updated
        return card.filename

    (board.cards_dir / card.filename).rename(board.cards_dir / expected)
    updated.filename = expected
    board.columns[col_index].cards[card_index] = updated
    write_board(board)
    return expected


def delete_card(board: Board, col_index: int, card_index: int) -> None:
    card = _card_at(board, col_index, card_index)
    board.card_path(card).unlink(missing_ok=True)
    del board.columns[col_index].cards[card_index]
    write_board(board)


def move_card(board: Board, from_col: int, card_index: int, to_col: int) -> None:
    """Move a card to the end of another column.

    Entering a Done column stamps ``date_completed``.
    """
    card = _card_at(board, from_col, card_index)
    target = _check_column_index(board, to_col, "destination column")

    del board.columns[from_col].cards[card_index]
    if board.is_done_column(target.name):
        card.date_completed = datetime.now().astimezone().replace(microsecond=0)
        write_card(card, board.card_path(card))
    target.cards.append(card)
    write_board(board)


def reorder_card(board: Board, col_index: int, from_index: int, to_index: int) -> None:
    """Swap two cards within a column."""
    _card_at(board, col_index, from_index)
    _card_at(board, col_index, to_index)
    cards = board.columns[col_index].cards
    cards[from_index], cards[to_index] = cards[to_index], cards[from_index]
    write_board(board)


def update_card(board: Board, col_index: int, card_index: int, **fields) -> Card:
    """Set card metadata fields and rewrite the card file.

    Accepts tags, projects, urls, due_date, scheduled_date, priority, archived.
    """
    unknown = set(fields) - CARD_FIELDS
    if unknown:
        raise BoardError(f"Unknown card fields: {', '.join(sorted(unknown))}")
    card = _card_at(board, col_index, card_index)

    for key, value in fields.items():
        if key == "urls":
            value = [u if isinstance(u, CardURL) else CardURL(url=str(u)) for u in value or []]
        elif key in ("tags", "projects"):
            value = list(value or [])
        elif key == "priority":
            value = max(int(value or 0), 0)
        elif key in ("due_date", "scheduled_date") and isinstance(value, datetime):
            value = value.date()
        setattr(card, key, value)

    write_card(card, board.card_path(card))
    return card


def task_priority_to_card_priority(priority: str | None) -> int:
    """todo.txt priority A-F -> card priority 1-6; anything else -> 0."""
    if priority and len(priority) == 1 and "A" <= priority <= "F":
        return ord(priority) - ord("A") + 1
    return 0


def create_card_from_task(
    board: Board,
    title: str,
    projects: list[str] | None = None,
    tags: list[str] | None = None,
    due_date: date | None = None,
    scheduled_date: date | None = None,
    priority: int = 0,
) -> Card:
    """Create a card in the board's first column."""
    if not board.columns:
        raise BoardError("Board has no columns")

    board.cards_dir.mkdir(parents=True, exist_ok=True)
    card = Card(
        filename=unique_filename(to_snake_case(title), board.cards_dir),
        title=title,
        tags=list(tags or []),
        projects=list(projects or []),
        content=f"# {title}\n",
        due_date=due_date,
        scheduled_date=scheduled_date,
        priority=priority,
    )
    write_card(card, board.card_path(card))
    board.columns[0].cards.append(card)
    write_board(board)
    return card


def _add_missing_projects(card: Card, projects: list[str]) -> bool:
    changed = False
    for name in projects:
        if not card.has_project(name):
            card.projects.append(name)
            changed = True
    return changed


def ensure_board_projects(board: Board, col_index: int, card_index: int, projects: list[str]) -> bool:
    """Add any of ``projects`` missing from the card. Returns True when written."""
    if not projects:
        return False
    card = _card_at(board, col_index, card_index)
    if not _add_missing_projects(card, projects):
        return False
    write_card(card, board.card_path(card))
    return True


def move_card_to_board(
    src: Board,
    col_index: int,
    card_index: int,
    dst: Board,
    projects: list[str] | None = None,
) -> Card:
    """Move a card to another board.

    Done cards land in the target's Done column, others in its first
    column. The destination is written before the source is cleaned up.
    """
    card = _card_at(src, col_index, card_index)
    if not dst.columns:
        raise BoardError("Target board has no columns")

    _add_missing_projects(card, projects or [])

    dst_index = 0
    if src.is_done_column(src.columns[col_index].name):
        dst_index = next((i for i, c in enumerate(dst.columns) if dst.is_done_column(c.name)), 0)

    dst.cards_dir.mkdir(parents=True, exist_ok=True)
    original = card.filename
    card.filename = unique_filename(to_snake_case(card.title), dst.cards_dir)
    write_card(card, dst.card_path(card))
    dst.columns[dst_index].cards.append(card)
    write_board(dst)

    del src.columns[col_index].cards[card_index]
    try:
        (src.cards_dir / original).unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Card moved but %s could not be removed: %s", src.cards_dir / original, e)
    write_board(src)
    return card


def collect_all_tags(board: Board) -> list[str]:
    return sorted({tag for card in board.all_cards() for tag in card.tags})


def collect_all_projects(board: Board) -> list[str]:
    return sorted({p for card in board.all_cards() for p in card.projects})
