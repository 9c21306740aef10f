"""Rich table formatter."""

from datetime import date
from typing import Any

from rich.table import Table

from wydo.models import Task

MAX_DISPLAY_TAGS = 5


class TableFormatter:
    """Format tasks as a Rich table."""

    NAME = "table"

    def __init__(self, date_fmt: str = "%Y-%m-%d", show_id: bool = True):
        self.date_fmt = date_fmt
        self.show_id = show_id

    def _format_date(self, value: date) -> str:
        try:
            return value.strftime(self.date_fmt)
        except ValueError:
            return value.isoformat()

    def _format_due(self, task: Task) -> str:
        due = task.due_date
        if due is None:
            return task.get_due_date()
        date_str = self._format_date(due)
        if task.done:
            return f"[dim]{date_str}[/dim]"
        if due < date.today():
            return f"[red bold]{date_str}[/red bold]"
        return date_str

    def _format_labels(self, task: Task) -> str:
        labels = [f"[magenta]+{p}[/magenta]" for p in task.projects]
        labels += [f"[cyan]@{c}[/cyan]" for c in task.contexts]
        return " ".join(labels[:MAX_DISPLAY_TAGS])

    def format(self, items: list[Task]) -> Any:
        if not items:
            return "[dim]No tasks[/dim]"

        has_priority = any(item.priority for item in items)
        has_labels = any(item.projects or item.contexts for item in items)
        has_due = any(item.get_due_date() for item in items)

        table = Table(show_header=True, header_style="bold")

        if self.show_id:
            table.add_column("ID", style="dim")
        table.add_column("Done", width=6)
        if has_priority:
            table.add_column("Pri", width=5)
        table.add_column("Task")
        if has_due:
            table.add_column("Due", width=12)
        if has_labels:
            table.add_column("Projects")

        for item in items:
            # Colorblind-safe: blue checkmark for done
            status = "[blue]✓[/blue]" if item.done else "[dim]•[/dim]"

            row = []
            if self.show_id:
                row.append(item.id)
            row.append(status)
            if has_priority:
                row.append(f"({item.priority})" if item.priority else "")
            row.append(item.name)
            if has_due:
                row.append(self._format_due(item))
            if has_labels:
                row.append(self._format_labels(item))

            table.add_row(*row)

        return table
