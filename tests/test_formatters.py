"""Tests for output formatters."""

import json
from datetime import date
from pathlib import Path

import pytest
from rich.console import Console
from rich.table import Table

from wydo.agenda import AgendaItem, DateBucket, DateReason, ItemSource
from wydo.formatters import FORMATTERS, FormatterProtocol, JsonlFormatter, TableFormatter, get_formatter
from wydo.formatters.agenda import format_agenda, format_bucket, format_overdue
from wydo.models import Card, Task


def render(renderable) -> str:
    console = Console(width=200, record=True)
    console.print(renderable)
    return console.export_text()


class TestGetFormatter:
    def test_registry(self):
        assert set(FORMATTERS) == {"table", "jsonl"}
        for cls in FORMATTERS.values():
            assert isinstance(cls(), FormatterProtocol)

    def test_table_options(self):
        formatter = get_formatter("table:%m-%d:noid")
        assert isinstance(formatter, TableFormatter)
        assert formatter.date_fmt == "%m-%d"
        assert formatter.show_id is False

    def test_table_defaults(self):
        formatter = get_formatter("table")
        assert formatter.date_fmt == "%Y-%m-%d"
        assert formatter.show_id is True

    def test_jsonl(self):
        assert isinstance(get_formatter("jsonl"), JsonlFormatter)

    def test_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown format: csv. Available: table, jsonl"):
            get_formatter("csv")


class TestTableFormatter:
    def test_empty(self):
        assert TableFormatter().format([]) == "[dim]No tasks[/dim]"

    def test_renders_tasks(self):
        tasks = [
            Task(name="Call mom", id="abc1234567", priority="A", projects=["family"], tags={"due": "2026-02-06"}),
            Task(name="Paid", id="def1234567", done=True),
        ]

        table = TableFormatter(date_fmt="%d.%m").format(tasks)
        assert isinstance(table, Table)
        text = render(table)

        assert "abc1234567" in text
        assert "(A)" in text
        assert "06.02" in text
        assert "+family" in text
        assert "✓" in text

    def test_noid_hides_ids(self):
        text = render(TableFormatter(show_id=False).format([Task(name="x", id="abc1234567")]))
        assert "abc1234567" not in text


class TestJsonlFormatter:
    def test_empty(self):
        assert JsonlFormatter().format([]) == ""

    def test_one_object_per_line(self):
        tasks = [
            Task(name="a", id="1", file=Path("/ws/tasks/todo.txt")),
            Task(name="b", id="2", projects=["work"]),
        ]
        lines = JsonlFormatter().format(tasks).splitlines()

        assert len(lines) == 2
        first, second = (json.loads(line) for line in lines)
        assert first["file"] == "/ws/tasks/todo.txt"
        assert second["projects"] == ["work"]
        assert second["line"] == "b +work"


class TestAgendaFormatter:
    def _bucket(self) -> DateBucket:
        day = date(2026, 2, 6)
        bucket = DateBucket(date=day)
        bucket.tasks.append(AgendaItem(ItemSource.TASK, DateReason.DUE, day, task=Task(name="Pay bill")))
        bucket.completed_cards.append(
            AgendaItem(
                ItemSource.CARD,
                DateReason.SCHEDULED,
                day,
                card=Card("c.md", title="Shipped"),
                board_name="Sprint",
                column_name="Done",
                completed=True,
            )
        )
        return bucket

    def test_bucket_table(self):
        text = render(format_bucket(self._bucket()))
        assert "Friday 2026-02-06" in text
        assert "Pay bill" in text
        assert "Shipped" in text
        assert "Sprint / Done" in text
        assert "sched" in text

    def test_empty_agenda(self):
        assert format_agenda([]) == ["[dim]Nothing scheduled[/dim]"]
        assert len(format_agenda([self._bucket()])) == 1

    def test_overdue(self):
        assert format_overdue([]) == "[dim]Nothing overdue[/dim]"
        item = AgendaItem(ItemSource.TASK, DateReason.DUE, date(2026, 1, 1), task=Task(name="Late"))
        text = render(format_overdue([item]))
        assert "2026-01-01" in text
        assert "Late" in text
