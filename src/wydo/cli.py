"""CLI commands."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console

if TYPE_CHECKING:
    from wydo.config import Config
    from wydo.models import Task
    from wydo.workspace import Workspace

app = typer.Typer(
    name="wydo",
    help="Boards, todo.txt tasks, notes and projects in plain files.",
    no_args_is_help=True,
)
task_app = typer.Typer(help="Manage todo.txt tasks.", no_args_is_help=True)
projects_app = typer.Typer(help="List, rename and archive projects.", no_args_is_help=True)
boards_app = typer.Typer(help="Inspect kanban boards.", no_args_is_help=True)
config_app = typer.Typer(help="Show and change settings.", no_args_is_help=True)
app.add_typer(task_app, name="task")
app.add_typer(projects_app, name="projects")
app.add_typer(boards_app, name="boards")
app.add_typer(config_app, name="config")

console = Console()

MIN_PARTIAL_ID = 4
VIEWS = ("day", "week", "month")

# Set by the root callback
_workspace_override: list[Path] = []


def _get_config() -> Config:
    """Lazy import and load config."""
    from wydo.config import Config

    return Config.load()


def _workspace_roots(cfg: Config) -> list[Path]:
    return list(_workspace_override) or cfg.workspace_dirs


def _load_workspaces() -> list[Workspace]:
    """Load every workspace, reporting task files that failed to load."""
    from wydo.workspace import load_workspaces

    cfg = _get_config()
    workspaces = load_workspaces(
        _workspace_roots(cfg), todo_file=cfg.todo_file, done_file=cfg.done_file
    )
    for ws in workspaces:
        for path, err in ws.load_errors.items():
            console.print(f"[red]Error:[/red] {path} was not loaded:\n{err}")
    return workspaces


def _fail(message: object) -> typer.Exit:
    console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(1)


@app.callback()
def main(
    workspace: Annotated[
        list[Path] | None,
        typer.Option("--workspace", "-w", help="Workspace root (repeatable, overrides config)"),
    ] = None,
):
    """Boards, todo.txt tasks, notes and projects in plain files."""
    cfg = _get_config()
    _workspace_override[:] = list(workspace or [])
    if cfg.debug_log:
        from wydo.logs import init_logging

        init_logging(cfg.config_dir, debug=True)


# Tasks


def _find_task(workspaces: list[Workspace], partial_id: str) -> tuple[Workspace, Task]:
    """Find a task by full ID or a unique prefix of at least four characters."""
    matches = [(ws, t) for ws in workspaces for t in ws.tasks if t.id == partial_id]
    if not matches and len(partial_id) >= MIN_PARTIAL_ID:
        matches = [(ws, t) for ws in workspaces for t in ws.tasks if t.id.startswith(partial_id)]

    if not matches:
        raise _fail(f"Task not found: {partial_id}")
    if len(matches) > 1:
        console.print(f"[yellow]Ambiguous ID '{partial_id}'. Matches:[/yellow]")
        for _, m in matches:
            console.print(f"  - {m.id}: {m.name[:50]}")
        raise typer.Exit(1)
    return matches[0]


@task_app.command("add")
def task_add(
    text: Annotated[str, typer.Argument(help="Task line in todo.txt syntax (use quotes)")],
):
    """Add a task to the first workspace's todo file."""
    from wydo.errors import WydoError

    workspaces = _load_workspaces()
    if not workspaces:
        raise _fail("No workspace configured")
    try:
        task = workspaces[0].store.add(text)
    except (WydoError, ValueError, OSError) as e:
        raise _fail(e)
    console.print(f"[green]✓[/green] Added: {task.name} [dim]({task.id})[/dim]")


@task_app.command("list")
def task_list(
    project: Annotated[str | None, typer.Option("-p", "--project", help="Only +project")] = None,
    context: Annotated[str | None, typer.Option("-c", "--context", help="Only @context")] = None,
    done: Annotated[bool, typer.Option("--done", help="Show completed")] = False,
    all_: Annotated[bool, typer.Option("-a", "--all", help="Show all")] = False,
    format_: Annotated[str | None, typer.Option("-f", "--format", help="Output format")] = None,
):
    """List tasks."""
    from wydo.formatters import get_formatter

    cfg = _get_config()
    items = [t for ws in _load_workspaces() for t in ws.tasks]
    if not all_:
        items = [t for t in items if t.done == done]
    if project:
        items = [t for t in items if t.has_project(project)]
    if context:
        items = [t for t in items if t.has_context(context)]

    try:
        formatter = get_formatter(format_ or cfg.default_format)
    except ValueError as e:
        raise _fail(e)
    console.print(formatter.format(items))


@task_app.command("done")
def task_done(
    id: Annotated[str, typer.Argument(help="Task ID (or partial)")],
):
    """Mark a task done and move it to the done file."""
    from wydo.errors import WydoError

    ws, task = _find_task(_load_workspaces(), id)
    try:
        completed = ws.store.complete(task.id)
    except (WydoError, OSError) as e:
        raise _fail(e)
    console.print(f"[green]✓[/green] Done: {completed.name}")


@task_app.command("rm")
def task_rm(
    id: Annotated[str, typer.Argument(help="Task ID (or partial)")],
):
    """Remove a task."""
    from wydo.errors import WydoError

    ws, task = _find_task(_load_workspaces(), id)
    try:
        ws.store.delete(task.id)
    except (WydoError, OSError) as e:
        raise _fail(e)
    console.print(f"[yellow]✓[/yellow] Removed: {task.name}")


@task_app.command("archive")
def task_archive():
    """Move completed tasks to each directory's done file."""
    from wydo.errors import WydoError

    moved = 0
    for ws in _load_workspaces():
        try:
            moved += ws.store.archive()
        except (WydoError, OSError) as e:
            raise _fail(e)
    console.print(f"[green]✓[/green] Archived {moved} task(s)")


# Agenda


def _day(value: datetime | None) -> date:
    return value.date() if value else date.today()


@app.command()
def agenda(
    on: Annotated[
        datetime | None, typer.Option("--date", "-d", formats=["%Y-%m-%d"], help="Day to show")
    ] = None,
    view: Annotated[str | None, typer.Option("--view", "-v", help="day, week or month")] = None,
):
    """Show tasks, cards and notes by day."""
    from wydo.agenda import agenda_for_workspaces, day_range, month_range, week_range
    from wydo.formatters.agenda import format_agenda

    cfg = _get_config()
    view = view or cfg.default_view
    ranges = {"day": day_range, "week": week_range, "month": month_range}
    if view not in ranges:
        raise _fail(f"Unknown view: {view}. Available: {', '.join(VIEWS)}")

    buckets = agenda_for_workspaces(_load_workspaces(), ranges[view](_day(on)))
    for renderable in format_agenda(buckets):
        console.print(renderable)


@app.command()
def overdue(
    on: Annotated[
        datetime | None, typer.Option("--date", "-d", formats=["%Y-%m-%d"], help="Cutoff day")
    ] = None,
):
    """Show pending items dated before a day (default today)."""
    from wydo.agenda import overdue_for_workspaces
    from wydo.formatters.agenda import format_overdue

    console.print(format_overdue(overdue_for_workspaces(_load_workspaces(), _day(on))))


# Projects


@projects_app.command("list")
def projects_list():
    """List projects with their task counts."""
    from rich.table import Table

    from wydo.backends.todotxt import task_count

    table = Table(show_header=True, header_style="bold")
    table.add_column("Project")
    table.add_column("Parent", style="dim")
    table.add_column("Kind", width=8)
    table.add_column("Tasks", justify="right")
    table.add_column("Cards", justify="right")

    rows = 0
    for ws in _load_workspaces():
        tasks = ws.tasks
        for project in ws.projects:
            pending, done = task_count(tasks, project.name)
            name = f"[dim]{project.name}[/dim]" if project.archived else project.name
            kind = "virtual" if project.is_virtual else "dir"
            cards = len(ws.projects.cards_for_project(project.name, ws.boards))
            table.add_row(name, project.parent, kind, f"{pending}/{pending + done}", str(cards))
            rows += 1

    console.print(table if rows else "[dim]No projects[/dim]")


@projects_app.command("rename")
def projects_rename(
    old: Annotated[str, typer.Argument(help="Current project name")],
    new: Annotated[str, typer.Argument(help="New name (merges if it exists)")],
):
    """Rename a project, merging into NEW when it already exists."""
    from wydo.errors import WydoError

    for ws in _load_workspaces():
        try:
            ws.rename_project(old, new)
        except (WydoError, OSError) as e:
            console.print(f"[red]Error:[/red] {e}")
            console.print("[yellow]Re-run the rename to finish migrating references.[/yellow]")
            raise typer.Exit(1)
    console.print(f"[green]✓[/green] Renamed {old} → {new}")


@projects_app.command("archive")
def projects_archive(
    name: Annotated[str, typer.Argument(help="Project name")],
    undo: Annotated[bool, typer.Option("--undo", help="Unarchive")] = False,
):
    """Archive (or unarchive) a physical project."""
    from wydo.errors import WydoError

    found = False
    for ws in _load_workspaces():
        if name not in ws.projects:
            continue
        found = True
        try:
            ws.set_project_archived(name, not undo)
        except (WydoError, OSError) as e:
            raise _fail(e)
    if not found:
        raise _fail(f"Project not found: {name}")
    state = "Unarchived" if undo else "Archived"
    console.print(f"[green]✓[/green] {state}: {name}")


# Boards


@boards_app.command("list")
def boards_list():
    """List boards with per-column card counts."""
    from rich.table import Table

    table = Table(show_header=True, header_style="bold")
    table.add_column("Board")
    table.add_column("Columns")
    table.add_column("Projects", style="magenta")
    table.add_column("Path", style="dim")

    rows = 0
    for ws in _load_workspaces():
        for board in ws.boards:
            name = f"[dim]{board.name} (archived)[/dim]" if board.archived else board.name
            columns = ", ".join(f"{c.name} ({len(c.cards)})" for c in board.columns)
            owners = " ".join(ws.projects.projects_for_board(board.path))
            table.add_row(name, columns, owners, str(board.path))
            rows += 1

    console.print(table if rows else "[dim]No boards[/dim]")


# Config


@config_app.command("list")
def config_list():
    """Show every setting with its current value."""
    from rich.table import Table

    from wydo.config import ConfigMeta

    cfg = _get_config()
    table = Table(show_header=True, header_style="bold")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_column("Description", style="dim")
    for key, desc in ConfigMeta.SETTINGS.items():
        table.add_row(key, str(getattr(cfg, key)), desc)
    console.print(table)
    console.print(f"[dim]{cfg.config_dir / 'config.json'}[/dim]")


@config_app.command("set")
def config_set(
    key: Annotated[str, typer.Argument(help="Setting name")],
    value: Annotated[str, typer.Argument(help="New value")],
):
    """Change a setting and save it to config.json."""
    from wydo.config import ConfigMeta

    if key not in ConfigMeta.SETTINGS:
        raise _fail(f"Unknown setting: {key}. Available: {', '.join(ConfigMeta.SETTINGS)}")
    cfg = _get_config()
    cfg.set(key, cfg.coerce(key, value))
    console.print(f"[green]✓[/green] {key} = {getattr(cfg, key)}")
