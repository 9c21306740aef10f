"""Workspace: one root directory loaded into boards, tasks, notes and projects."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from wydo.backends.kanban import read_board
from wydo.backends.notes import load_notes
from wydo.backends.todotxt import DONE_FILE, TODO_FILE, TaskStore
from wydo.errors import ProjectNotFoundError
from wydo.models import Board, Note, Project, Task
from wydo.projects import (
    ProjectRegistry,
    rename_project_dir,
    rename_project_references,
    set_project_archived,
)
from wydo.scanner import TASKS_DIR, ScanResult, TaskDirEntry, scan_workspace

logger = logging.getLogger("wydo.workspace")


def load_boards(scan: ScanResult) -> list[Board]:
    boards = []
    for entry in scan.boards:
        try:
            boards.append(read_board(entry.path))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable board %s: %s", entry.path, e)
    return boards


class Workspace:
    """A loaded snapshot of one workspace root.

    Snapshots are never patched incrementally: call reload() after a
    mutation and use the returned workspace.
    """

    def __init__(
        self,
        root: Path,
        scan: ScanResult,
        boards: list[Board],
        store: TaskStore,
        notes: list[Note],
        projects: ProjectRegistry,
        allow_mismatch: bool = False,
    ):
        self.root = root
        self.scan = scan
        self.boards = boards
        self.store = store
        self.notes = notes
        self.projects = projects
        self.allow_mismatch = allow_mismatch

    @classmethod
    def load(
        cls,
        root: Path | str,
        allow_mismatch: bool = False,
        todo_file: str = TODO_FILE,
        done_file: str = DONE_FILE,
    ) -> Workspace:
        scan = scan_workspace(root)
        boards = load_boards(scan)
        store = TaskStore(
            scan.task_dirs,
            allow_mismatch=allow_mismatch,
            default_dir=scan.root / TASKS_DIR,
            todo_file=todo_file,
            done_file=done_file,
        )
        notes = load_notes(scan.note_paths, scan.root)
        projects = ProjectRegistry.build(scan.projects, store.list(), boards)
        logger.debug(
            "Loaded workspace %s: %d boards, %d tasks, %d notes, %d projects",
            scan.root,
            len(boards),
            len(store.tasks),
            len(notes),
            len(projects),
        )
        return cls(scan.root, scan, boards, store, notes, projects, allow_mismatch)

    def reload(self) -> Workspace:
        return Workspace.load(
            self.root,
            allow_mismatch=self.allow_mismatch,
            todo_file=self.store.todo_file,
            done_file=self.store.done_file,
        )

    @property
    def tasks(self) -> list[Task]:
        return self.store.list()

    @property
    def task_dirs(self) -> list[TaskDirEntry]:
        return self.scan.task_dirs

    @property
    def load_errors(self) -> dict[Path, Exception]:
        return self.store.load_errors

    def get_board(self, name: str) -> Board | None:
        """Find a board by name (case-insensitive) or directory name."""
        for board in self.boards:
            if board.name.lower() == name.lower() or board.path.name == name:
                return board
        return None

    def get_project(self, name: str) -> Project:
        project = self.projects.get(name)
        if project is None:
            raise ProjectNotFoundError(f"Project not found: {name}")
        return project

    def rename_project(self, old: str, new: str) -> Workspace:
        """Rename or merge project ``old`` into ``new`` and return a fresh snapshot.

        Unknown names only rewrite references, so rerunning a rename that
        already happened changes nothing.
        """
        if old == new:
            return self
        ws = self
        project = self.projects.get(old)
        if project is not None and project.dir_path is not None:
            skipped = rename_project_dir(project, new, self.projects.get(new))
            for path in skipped:
                logger.warning("Left in place during merge: %s", path)
            ws = self.reload()
        rename_project_references(old, new, ws.store, ws.boards)
        return ws.reload()

    def set_project_archived(self, name: str, archived: bool) -> None:
        set_project_archived(self.get_project(name), archived)


def load_workspaces(roots: Iterable[Path | str], allow_mismatch: bool = False, **kwargs) -> list[Workspace]:
    """Load each root once, in order."""
    workspaces: list[Workspace] = []
    seen: set[Path] = set()
    for root in roots:
        resolved = Path(root).expanduser().resolve()
        if resolved in seen:
            continue
        seen.add(resolved)
        workspaces.append(Workspace.load(resolved, allow_mismatch=allow_mismatch, **kwargs))
    return workspaces
