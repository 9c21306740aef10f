"""Agenda queries: tasks, cards and notes bucketed by calendar day."""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

from wydo.backends.base import TaskService
from wydo.models import Board, Card, Note, Task

if TYPE_CHECKING:
    from wydo.workspace import Workspace


class ItemSource(Enum):
    TASK = "task"
    CARD = "card"
    NOTE = "note"


class DateReason(Enum):
    DUE = "due"
    SCHEDULED = "sched"
    NOTE = "note"

    def __str__(self) -> str:
        return self.value


@dataclass
class AgendaItem:
    """A task, card or note occurrence on one calendar day."""

    source: ItemSource
    reason: DateReason
    date: date
    task: Task | None = None
    card: Card | None = None
    note: Note | None = None
    board_name: str = ""
    board_path: str = ""
    column_name: str = ""
    col_index: int = -1
    card_index: int = -1
    completed: bool = False

    @property
    def title(self) -> str:
        if self.task is not None:
            return self.task.name
        if self.card is not None:
            return self.card.title
        if self.note is not None:
            return self.note.title
        return ""


@dataclass
class DateBucket:
    date: date
    tasks: list[AgendaItem] = field(default_factory=list)
    cards: list[AgendaItem] = field(default_factory=list)
    notes: list[AgendaItem] = field(default_factory=list)
    completed_tasks: list[AgendaItem] = field(default_factory=list)
    completed_cards: list[AgendaItem] = field(default_factory=list)

    def all_items(self) -> list[AgendaItem]:
        """Pending items: tasks, then cards, then notes."""
        return self.tasks + self.cards + self.notes

    def all_completed_items(self) -> list[AgendaItem]:
        return self.completed_tasks + self.completed_cards

    def total_count(self) -> int:
        return len(self.all_items()) + len(self.all_completed_items())


@dataclass(frozen=True)
class DateRange:
    """Inclusive day range."""

    start: date
    end: date

    def __contains__(self, day: object) -> bool:
        if isinstance(day, datetime):
            day = day.date()
        return isinstance(day, date) and self.start <= day <= self.end

    def days(self) -> list[date]:
        return [self.start + timedelta(days=i) for i in range((self.end - self.start).days + 1)]


def _as_day(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def day_range(day: date | datetime) -> DateRange:
    day = _as_day(day)
    return DateRange(day, day)


def week_range(day: date | datetime) -> DateRange:
    """Monday through Sunday of the week containing ``day``."""
    day = _as_day(day)
    monday = day - timedelta(days=day.weekday())
    return DateRange(monday, monday + timedelta(days=6))


def month_range(day: date | datetime) -> DateRange:
    day = _as_day(day)
    last = calendar.monthrange(day.year, day.month)[1]
    return DateRange(day.replace(day=1), day.replace(day=last))


class _Buckets:
    def __init__(self) -> None:
        self._by_day: dict[date, DateBucket] = {}

    def get(self, day: date) -> DateBucket:
        bucket = self._by_day.get(day)
        if bucket is None:
            bucket = self._by_day[day] = DateBucket(date=day)
        return bucket

    def sorted(self) -> list[DateBucket]:
        return [self._by_day[day] for day in sorted(self._by_day)]

    def add_task(self, task: Task, completed: bool, date_range: DateRange) -> None:
        due, scheduled = task.due_date, task.scheduled_date
        for reason, day in ((DateReason.DUE, due), (DateReason.SCHEDULED, scheduled)):
            if day is None or day not in date_range:
                continue
            # Same-day scheduled is already shown as due
            if reason is DateReason.SCHEDULED and day == due:
                continue
            item = AgendaItem(ItemSource.TASK, reason, day, task=task, completed=completed)
            bucket = self.get(day)
            (bucket.completed_tasks if completed else bucket.tasks).append(item)

    def add_card(
        self, board: Board, col_index: int, card_index: int, completed: bool, date_range: DateRange
    ) -> None:
        column = board.columns[col_index]
        card = column.cards[card_index]
        due, scheduled = card.due_date, card.scheduled_date
        for reason, day in ((DateReason.DUE, due), (DateReason.SCHEDULED, scheduled)):
            if day is None or day not in date_range:
                continue
            if reason is DateReason.SCHEDULED and day == due:
                continue
            item = _card_item(board, col_index, card_index, reason, day)
            item.completed = completed
            bucket = self.get(day)
            (bucket.completed_cards if completed else bucket.cards).append(item)

    def add_note(self, note: Note, date_range: DateRange) -> None:
        if note.date in date_range:
            self.get(note.date).notes.append(
                AgendaItem(ItemSource.NOTE, DateReason.NOTE, note.date, note=note)
            )


def _card_item(board: Board, col_index: int, card_index: int, reason: DateReason, day: date) -> AgendaItem:
    column = board.columns[col_index]
    return AgendaItem(
        ItemSource.CARD,
        reason,
        day,
        card=column.cards[card_index],
        board_name=board.name,
        board_path=str(board.path),
        column_name=column.name,
        col_index=col_index,
        card_index=card_index,
    )


def _live_cards(boards: Iterable[Board]) -> Iterable[tuple[Board, int, int, bool]]:
    """(board, col_index, card_index, in_done) for cards on unarchived boards."""
    for board in boards:
        if board.archived:
            continue
        for col_index, column in enumerate(board.columns):
            in_done = board.is_done_column(column.name)
            for card_index, card in enumerate(column.cards):
                if not card.archived:
                    yield board, col_index, card_index, in_done


def _collect(
    buckets: _Buckets,
    tasks: TaskService | None,
    boards: Iterable[Board],
    notes: Iterable[Note],
    date_range: DateRange,
) -> None:
    if tasks is not None:
        for task in tasks.list_pending():
            buckets.add_task(task, False, date_range)
        for task in tasks.list_done():
            buckets.add_task(task, True, date_range)
    for board, col_index, card_index, in_done in _live_cards(boards):
        buckets.add_card(board, col_index, card_index, in_done, date_range)
    for note in notes:
        buckets.add_note(note, date_range)


def query_agenda(
    tasks: TaskService | None,
    boards: Iterable[Board],
    notes: Iterable[Note],
    date_range: DateRange,
) -> list[DateBucket]:
    """Bucket everything dated inside ``date_range``, sorted by day.

    Cards on archived boards or marked archived are left out. Cards in a
    Done column land in the completed lists.
    """
    buckets = _Buckets()
    _collect(buckets, tasks, boards, notes, date_range)
    return buckets.sorted()


def _overdue_day(due: date | None, scheduled: date | None, cutoff: date) -> tuple[DateReason, date] | None:
    if due is not None and due < cutoff:
        return DateReason.DUE, due
    if scheduled is not None and scheduled < cutoff:
        return DateReason.SCHEDULED, scheduled
    return None


def _collect_overdue(
    items: list[AgendaItem], tasks: TaskService | None, boards: Iterable[Board], cutoff: date
) -> None:
    if tasks is not None:
        for task in tasks.list_pending():
            hit = _overdue_day(task.due_date, task.scheduled_date, cutoff)
            if hit is not None:
                items.append(AgendaItem(ItemSource.TASK, hit[0], hit[1], task=task))
    for board, col_index, card_index, in_done in _live_cards(boards):
        if in_done:
            continue
        card = board.columns[col_index].cards[card_index]
        hit = _overdue_day(card.due_date, card.scheduled_date, cutoff)
        if hit is not None:
            items.append(_card_item(board, col_index, card_index, hit[0], hit[1]))


def query_overdue_items(
    tasks: TaskService | None,
    boards: Iterable[Board],
    cutoff: date | datetime,
) -> list[AgendaItem]:
    """Pending items dated strictly before ``cutoff``'s day, oldest first.

    A due date before the cutoff wins; the scheduled date is only checked
    when there is none. Each item appears at most once.
    """
    items: list[AgendaItem] = []
    _collect_overdue(items, tasks, boards, _as_day(cutoff))
    return sorted(items, key=lambda item: item.date)


def agenda_for_workspaces(workspaces: Iterable[Workspace], date_range: DateRange) -> list[DateBucket]:
    """query_agenda across several workspaces, merged into one set of buckets."""
    buckets = _Buckets()
    for ws in workspaces:
        _collect(buckets, ws.store, ws.boards, ws.notes, date_range)
    return buckets.sorted()


def overdue_for_workspaces(workspaces: Iterable[Workspace], cutoff: date | datetime) -> list[AgendaItem]:
    items: list[AgendaItem] = []
    for ws in workspaces:
        _collect_overdue(items, ws.store, ws.boards, _as_day(cutoff))
    return sorted(items, key=lambda item: item.date)
