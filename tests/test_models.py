"""Tests for data models."""

from datetime import date
from pathlib import Path

from wydo.models import Board, Card, Column, Project, Task, is_done_column, parse_day


class TestTask:
    def test_project_set_semantics(self):
        task = Task(name="x", projects=["work"])
        task.add_project("work")
        assert task.projects == ["work"]

        task.remove_project("missing")
        assert task.projects == ["work"]

        task.remove_project("work")
        assert not task.has_project("work")

    def test_context_set_semantics(self):
        task = Task(name="x")
        task.add_context("phone")
        task.add_context("phone")
        assert task.contexts == ["phone"]
        task.remove_context("desk")
        assert task.has_context("phone")

    def test_due_and_scheduled_sugar(self):
        task = Task(name="x")
        task.set_due_date("2026-02-06")
        task.set_scheduled_date("2026-02-01")

        assert task.get_due_date() == "2026-02-06"
        assert task.due_date == date(2026, 2, 6)
        assert task.scheduled_date == date(2026, 2, 1)

        task.set_due_date(None)
        assert "due" not in task.tags
        assert task.due_date is None

    def test_invalid_due_date_parses_to_none(self):
        task = Task(name="x", tags={"due": "tomorrow"})
        assert task.get_due_date() == "tomorrow"
        assert task.due_date is None

    def test_str_is_todo_line(self):
        task = Task(name="Call mom", priority="A", projects=["family"])
        assert str(task) == "(A) Call mom +family"

    def test_to_dict(self):
        task = Task(name="Call mom", id="abc", file=Path("/ws/tasks/todo.txt"))
        data = task.to_dict()
        assert data["id"] == "abc"
        assert data["file"] == "/ws/tasks/todo.txt"
        assert data["line"] == "Call mom"


def test_parse_day():
    assert parse_day("2026-02-06") == date(2026, 2, 6)
    assert parse_day("2026-13-01") is None
    assert parse_day("") is None
    assert parse_day(None) is None
    assert parse_day("2026-2-6") is None
    assert parse_day("2026-02-6") is None
    assert Task(name="x", tags={"due": "2026-2-6"}).due_date is None


def test_card_has_project_is_case_insensitive():
    card = Card(filename="a.md", projects=["Work"])
    assert card.has_project("work")
    assert not card.has_project("home")


class TestBoard:
    def _board(self) -> Board:
        return Board(
            name="Sprint",
            path=Path("/ws/boards/sprint"),
            columns=[Column("To Do", [Card("a.md")]), Column("Doing"), Column("DONE", [Card("b.md")])],
        )

    def test_done_column_match(self):
        assert is_done_column("Done")
        assert is_done_column(" done ")
        assert not is_done_column("Done soon")

    def test_lookup(self):
        board = self._board()
        assert board.get_column("Doing").name == "Doing"
        assert board.get_column("Missing") is None
        assert board.column_index("DONE") == 2
        assert board.column_index("Missing") == -1
        assert board.is_last_column(2)
        assert board.card_path(Card("a.md")) == Path("/ws/boards/sprint/cards/a.md")
        assert [c.filename for c in board.all_cards()] == ["a.md", "b.md"]

    def test_done_column_guards(self):
        board = self._board()
        assert board.can_delete_column(2) == (False, "cannot delete the Done column")
        assert board.can_rename_column(2)[0] is False
        assert board.can_delete_column(1) == (True, "")
        assert board.can_delete_column(5)[0] is False

    def test_single_column_cannot_be_deleted(self):
        board = Board(name="b", path=Path("/b"), columns=[Column("Only")])
        assert board.can_delete_column(0) == (False, "cannot delete the last column")


def test_project_virtual_and_index_path():
    virtual = Project(name="home")
    physical = Project(name="work", dir_path=Path("/ws/projects/work"))

    assert virtual.is_virtual
    assert virtual.index_path is None
    assert not physical.is_virtual
    assert physical.index_path == Path("/ws/projects/work/work.md")
