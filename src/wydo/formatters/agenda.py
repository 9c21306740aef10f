"""Rich rendering for agenda buckets and overdue lists."""

from typing import Any

from rich.table import Table

from wydo.agenda import AgendaItem, DateBucket, ItemSource

SOURCE_LABELS = {
    ItemSource.TASK: "task",
    ItemSource.CARD: "card",
    ItemSource.NOTE: "note",
}


def _where(item: AgendaItem) -> str:
    if item.source is ItemSource.CARD:
        return f"{item.board_name} / {item.column_name}"
    if item.source is ItemSource.NOTE and item.note is not None:
        return item.note.rel_path
    if item.task is not None and item.task.projects:
        return " ".join(f"+{p}" for p in item.task.projects)
    return ""


def _add_item(table: Table, item: AgendaItem, show_date: bool = False) -> None:
    title = f"[dim strike]{item.title}[/dim strike]" if item.completed else item.title
    row = []
    if show_date:
        row.append(item.date.isoformat())
    row.extend([str(item.reason), SOURCE_LABELS[item.source], title, _where(item)])
    table.add_row(*row)


def format_bucket(bucket: DateBucket) -> Table:
    table = Table(title=bucket.date.strftime("%A %Y-%m-%d"), show_header=True, header_style="bold")
    table.add_column("Why", width=6)
    table.add_column("Kind", width=5)
    table.add_column("Item")
    table.add_column("Where", style="dim")
    for item in bucket.all_items():
        _add_item(table, item)
    for item in bucket.all_completed_items():
        _add_item(table, item)
    return table


def format_agenda(buckets: list[DateBucket]) -> list[Any]:
    """One table per day, in date order."""
    if not buckets:
        return ["[dim]Nothing scheduled[/dim]"]
    return [format_bucket(bucket) for bucket in buckets]


def format_overdue(items: list[AgendaItem]) -> Any:
    if not items:
        return "[dim]Nothing overdue[/dim]"
    table = Table(title="Overdue", show_header=True, header_style="bold red")
    table.add_column("Date", width=10)
    table.add_column("Why", width=6)
    table.add_column("Kind", width=5)
    table.add_column("Item")
    table.add_column("Where", style="dim")
    for item in items:
        _add_item(table, item, show_date=True)
    return table
