"""Data models for wydo."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

DUE_KEY = "due"
SCHEDULED_KEY = "scheduled"
DATE_FMT = "%Y-%m-%d"
DAY_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_day(value: str | None) -> date | None:
    """Parse a yyyy-mm-dd string, returning None when absent or invalid."""
    if not value or not DAY_PATTERN.fullmatch(value):
        return None
    try:
        return datetime.strptime(value, DATE_FMT).date()
    except ValueError:
        return None


@dataclass
class Task:
    """A single todo.txt line.

    Mutable: completion and edits change it in place. The owning text file
    is ``file``; None means the task has not been persisted yet.
    """

    name: str
    id: str = ""
    done: bool = False
    priority: str | None = None
    created_date: str | None = None
    completion_date: str | None = None
    projects: list[str] = field(default_factory=list)
    contexts: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)
    file: Path | None = None

    def __str__(self) -> str:
        from wydo.backends.utils import format_task_line

        return format_task_line(self)

    # Projects and contexts behave as ordered sets

    def has_project(self, name: str) -> bool:
        return name in self.projects

    def add_project(self, name: str) -> None:
        if name not in self.projects:
            self.projects.append(name)

    def remove_project(self, name: str) -> None:
        self.projects = [p for p in self.projects if p != name]

    def has_context(self, name: str) -> bool:
        return name in self.contexts

    def add_context(self, name: str) -> None:
        if name not in self.contexts:
            self.contexts.append(name)

    def remove_context(self, name: str) -> None:
        self.contexts = [c for c in self.contexts if c != name]

    # Reserved tag sugar

    def get_due_date(self) -> str:
        return self.tags.get(DUE_KEY, "")

    def set_due_date(self, value: str | None) -> None:
        self._set_tag(DUE_KEY, value)

    def get_scheduled_date(self) -> str:
        return self.tags.get(SCHEDULED_KEY, "")

    def set_scheduled_date(self, value: str | None) -> None:
        self._set_tag(SCHEDULED_KEY, value)

    @property
    def due_date(self) -> date | None:
        return parse_day(self.get_due_date())

    @property
    def scheduled_date(self) -> date | None:
        return parse_day(self.get_scheduled_date())

    def _set_tag(self, key: str, value: str | None) -> None:
        if value:
            self.tags[key] = value
        else:
            self.tags.pop(key, None)

    def to_dict(self) -> dict:
        """Serialize to dict for formatters."""
        return {
            "id": self.id,
            "name": self.name,
            "done": self.done,
            "priority": self.priority,
            "created_date": self.created_date,
            "completion_date": self.completion_date,
            "projects": list(self.projects),
            "contexts": list(self.contexts),
            "tags": dict(self.tags),
            "file": str(self.file) if self.file else None,
            "line": str(self),
        }


@dataclass
class CardURL:
    """A labelled link attached to a card."""

    url: str
    label: str = ""


@dataclass
class Card:
    """A kanban card backed by a markdown file in a board's cards/ directory."""

    filename: str
    title: str = ""
    tags: list[str] = field(default_factory=list)
    projects: list[str] = field(default_factory=list)
    urls: list[CardURL] = field(default_factory=list)
    preview: str = ""
    content: str = ""
    due_date: date | None = None
    scheduled_date: date | None = None
    date_completed: datetime | None = None
    priority: int = 0  # 0 = unset
    archived: bool = False

    def has_project(self, name: str) -> bool:
        """Card project references compare case-insensitively."""
        return any(p.lower() == name.lower() for p in self.projects)


@dataclass
class Column:
    """A board column; card order is the persisted kanban position."""

    name: str
    cards: list[Card] = field(default_factory=list)


def is_done_column(name: str) -> bool:
    return name.strip().lower() == "done"


@dataclass
class Board:
    """A kanban board: board.md index plus a cards/ directory."""

    name: str
    path: Path
    columns: list[Column] = field(default_factory=list)
    archived: bool = False

    @property
    def cards_dir(self) -> Path:
        return self.path / "cards"

    def card_path(self, card: Card) -> Path:
        return self.cards_dir / card.filename

    def get_column(self, name: str) -> Column | None:
        return next((c for c in self.columns if c.name == name), None)

    def column_index(self, name: str) -> int:
        for idx, col in enumerate(self.columns):
            if col.name == name:
                return idx
        return -1

    def is_done_column(self, name: str) -> bool:
        return is_done_column(name)

    def is_last_column(self, index: int) -> bool:
        return index == len(self.columns) - 1

    def can_delete_column(self, index: int) -> tuple[bool, str]:
        if index < 0 or index >= len(self.columns):
            return False, "invalid column index"
        if self.is_done_column(self.columns[index].name):
            return False, "cannot delete the Done column"
        if len(self.columns) <= 1:
            return False, "cannot delete the last column"
        return True, ""

    def can_rename_column(self, index: int) -> tuple[bool, str]:
        if index < 0 or index >= len(self.columns):
            return False, "invalid column index"
        if self.is_done_column(self.columns[index].name):
            return False, "cannot rename the Done column"
        return True, ""

    def all_cards(self) -> list[Card]:
        return [card for col in self.columns for card in col.cards]


@dataclass
class Note:
    """A dated markdown note."""

    title: str
    file_path: Path
    rel_path: str
    date: date


@dataclass
class Project:
    """A project known to a workspace registry.

    ``dir_path`` is None for virtual projects, which exist only through
    +tag or card references.
    """

    name: str
    dir_path: Path | None = None
    parent: str = ""
    children: list[str] = field(default_factory=list)
    archived: bool = False

    @property
    def is_virtual(self) -> bool:
        return self.dir_path is None

    @property
    def index_path(self) -> Path | None:
        if self.dir_path is None:
            return None
        return self.dir_path / f"{self.name}.md"
