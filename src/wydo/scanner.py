"""Workspace directory scanner.

Walks a workspace root and classifies subtrees by directory name:

    boards/<name>/board.md   -> board
    tasks/*.txt              -> task directory
    projects/<name>/         -> project (walked again with <name> as context)
    cards/                   -> never entered directly
    anything else            -> walked with the current project context

Markdown files outside ``cards/`` other than ``board.md`` are collected as
note candidates. File contents are never read here.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger("wydo.scanner")

DEFAULT_SKIP_DIRS = frozenset({"node_modules", "vendor", "__pycache__", "target", "build", "dist"})

BOARDS_DIR = "boards"
TASKS_DIR = "tasks"
PROJECTS_DIR = "projects"
CARDS_DIR = "cards"
BOARD_FILE = "board.md"


@dataclass
class BoardEntry:
    path: Path
    project: str = ""


@dataclass
class TaskDirEntry:
    path: Path
    files: list[str] = field(default_factory=list)
    project: str = ""

    @property
    def file_paths(self) -> list[Path]:
        return [self.path / name for name in self.files]


@dataclass
class ProjectEntry:
    name: str
    path: Path
    parent: str = ""


@dataclass
class ScanResult:
    """Flat manifest of everything discovered under one root."""

    root: Path
    boards: list[BoardEntry] = field(default_factory=list)
    task_dirs: list[TaskDirEntry] = field(default_factory=list)
    projects: list[ProjectEntry] = field(default_factory=list)
    note_paths: list[Path] = field(default_factory=list)


@runtime_checkable
class DirectoryLister(Protocol):
    """Filesystem view used by the scanner.

    ``list_dir`` returns (name, is_dir) pairs and raises OSError like the os
    module does. Symlinked directories are not reported as directories.
    """

    def list_dir(self, path: Path) -> list[tuple[str, bool]]: ...

    def is_file(self, path: Path) -> bool: ...


class OSDirectoryLister:
    """DirectoryLister backed by the real filesystem."""

    def list_dir(self, path: Path) -> list[tuple[str, bool]]:
        with os.scandir(path) as it:
            return sorted((entry.name, entry.is_dir(follow_symlinks=False)) for entry in it)

    def is_file(self, path: Path) -> bool:
        return os.path.isfile(path)


def should_skip_dir(name: str, skip: frozenset[str] = DEFAULT_SKIP_DIRS) -> bool:
    return name.startswith(".") or name in skip


def is_note_file(name: str, parent: Path) -> bool:
    if not name.lower().endswith(".md"):
        return False
    if name == BOARD_FILE:
        return False
    return parent.name != CARDS_DIR


class _Walker:
    def __init__(self, lister: DirectoryLister, skip: frozenset[str], result: ScanResult):
        self.lister = lister
        self.skip = skip
        self.result = result

    def _list(self, path: Path) -> list[tuple[str, bool]]:
        try:
            return self.lister.list_dir(path)
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning("Skipping unreadable directory %s: %s", path, e)
            return []

    def walk(self, directory: Path, project: str) -> None:
        for name, is_dir in self._list(directory):
            path = directory / name
            if not is_dir:
                if is_note_file(name, directory):
                    self.result.note_paths.append(path)
                continue
            if should_skip_dir(name, self.skip):
                continue
            if name == BOARDS_DIR:
                self.scan_boards(path, project)
            elif name == TASKS_DIR:
                self.scan_tasks(path, project)
            elif name == PROJECTS_DIR:
                self.scan_projects(path, project)
            elif name == CARDS_DIR:
                continue
            else:
                self.walk(path, project)

    def scan_boards(self, directory: Path, project: str) -> None:
        for name, is_dir in self._list(directory):
            if not is_dir or should_skip_dir(name, self.skip):
                continue
            board_path = directory / name
            if self.lister.is_file(board_path / BOARD_FILE):
                self.result.boards.append(BoardEntry(path=board_path, project=project))

    def scan_tasks(self, directory: Path, project: str) -> None:
        files = [
            name for name, is_dir in self._list(directory) if not is_dir and name.lower().endswith(".txt")
        ]
        if files:
            self.result.task_dirs.append(TaskDirEntry(path=directory, files=files, project=project))

    def scan_projects(self, directory: Path, parent: str) -> None:
        for name, is_dir in self._list(directory):
            if not is_dir or should_skip_dir(name, self.skip):
                continue
            project_path = directory / name
            self.result.projects.append(ProjectEntry(name=name, path=project_path, parent=parent))
            self.walk(project_path, name)


def scan_workspace(
    root: Path | str,
    lister: DirectoryLister | None = None,
    skip: frozenset[str] = DEFAULT_SKIP_DIRS,
) -> ScanResult:
    """Scan one workspace root. A missing root yields an empty result."""
    root = Path(root)
    if lister is None:
        lister = OSDirectoryLister()
        root = root.expanduser().resolve()
    result = ScanResult(root=root)
    _Walker(lister, skip, result).walk(root, "")
    logger.debug(
        "Scanned %s: %d boards, %d task dirs, %d projects, %d notes",
        root,
        len(result.boards),
        len(result.task_dirs),
        len(result.projects),
        len(result.note_paths),
    )
    return result
