"""Project registry: projects discovered from directories, task tags and cards.

The registry only holds project identity and metadata. Membership queries
take the task, board and note lists as arguments and match by predicate.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable, Iterator
from pathlib import Path

from wydo.backends.kanban import write_card
from wydo.backends.todotxt import TaskStore
from wydo.errors import ProjectError
from wydo.frontmatter import parse_front_matter, render_front_matter
from wydo.models import Board, Card, Note, Project, Task
from wydo.scanner import PROJECTS_DIR, ProjectEntry

logger = logging.getLogger("wydo.projects")


def read_project_archived(dir_path: Path, name: str) -> bool:
    """Archived flag from ``<dir_path>/<name>.md`` front matter."""
    try:
        content = (dir_path / f"{name}.md").read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return False
    meta, _ = parse_front_matter(content)
    return meta.get("archived") is True


class ProjectRegistry:
    """Deduplicated project graph for one workspace."""

    def __init__(self) -> None:
        self._projects: dict[str, Project] = {}

    @classmethod
    def build(
        cls,
        dirs: Iterable[ProjectEntry],
        tasks: Iterable[Task],
        boards: Iterable[Board],
    ) -> ProjectRegistry:
        registry = cls()
        for entry in dirs:
            registry.ensure(entry.name, entry.path, entry.parent)
        for task in tasks:
            for name in task.projects:
                registry.ensure(name)
        for board in boards:
            for card in board.all_cards():
                for name in card.projects:
                    registry.ensure(name)
        registry._link_children()
        return registry

    def ensure(self, name: str, dir_path: Path | None = None, parent: str = "") -> Project:
        """Add ``name`` or merge into the existing entry.

        A directory or parent is only filled in when the entry has none yet.
        """
        project = self._projects.get(name)
        if project is None:
            project = Project(name=name)
            self._projects[name] = project
        if dir_path is not None and project.dir_path is None:
            project.dir_path = dir_path
            project.archived = read_project_archived(dir_path, name)
        if parent and not project.parent:
            project.parent = parent
        return project

    def _link_children(self) -> None:
        for project in self._projects.values():
            project.children = []
        for name in sorted(self._projects):
            parent = self._projects.get(self._projects[name].parent)
            if parent is not None:
                parent.children.append(name)

    def get(self, name: str) -> Project | None:
        return self._projects.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._projects

    def __iter__(self) -> Iterator[Project]:
        return iter(self.list())

    def __len__(self) -> int:
        return len(self._projects)

    def list(self) -> list[Project]:
        return [self._projects[name] for name in sorted(self._projects)]

    # Membership

    def tasks_for_project(self, name: str, tasks: Iterable[Task]) -> list[Task]:
        return [t for t in tasks if t.has_project(name)]

    def cards_for_project(self, name: str, boards: Iterable[Board]) -> list[Card]:
        return [card for board in boards for card in board.all_cards() if card.has_project(name)]

    def _under_project(self, name: str, path: Path) -> bool:
        project = self._projects.get(name)
        if project is None or project.dir_path is None:
            return False
        return project.dir_path in path.parents

    def notes_for_project(self, name: str, notes: Iterable[Note]) -> list[Note]:
        return [n for n in notes if self._under_project(name, n.file_path)]

    def boards_for_project(self, name: str, boards: Iterable[Board]) -> list[Board]:
        return [b for b in boards if self._under_project(name, b.path)]

    def projects_for_board(self, board_path: Path) -> list[str]:
        """Innermost project containing ``board_path``, then its ancestors."""
        owners = [
            p for p in self._projects.values() if p.dir_path is not None and p.dir_path in board_path.parents
        ]
        if not owners:
            return []
        current: Project | None = max(owners, key=lambda p: len(p.dir_path.parts))
        names: list[str] = []
        while current is not None and current.name not in names:
            names.append(current.name)
            current = self._projects.get(current.parent) if current.parent else None
        return names

    def projects_dirs(self, root: Path) -> list[Path]:
        """Directories new physical projects can be created in.

        ``<root>/projects`` is always included.
        """
        dirs: list[Path] = []
        for project in self.list():
            if project.dir_path is None:
                continue
            parent = project.dir_path.parent
            if parent.name == PROJECTS_DIR and parent not in dirs:
                dirs.append(parent)
        fallback = root / PROJECTS_DIR
        if fallback not in dirs:
            dirs.append(fallback)
        return dirs


def set_project_archived(project: Project, archived: bool) -> None:
    """Persist the archived flag in the project's index note."""
    index = project.index_path
    if index is None:
        raise ProjectError(f"Cannot archive virtual project {project.name!r}")

    try:
        content = index.read_text(encoding="utf-8")
    except FileNotFoundError:
        content = f"# {project.name}\n"
    meta, body = parse_front_matter(content)
    meta.pop("archived", None)
    if archived:
        meta["archived"] = True
    index.write_text(render_front_matter(meta, body), encoding="utf-8")
    project.archived = archived
    logger.info("Set project %s archived=%s", project.name, archived)


def merge_dirs(src: Path, dst: Path) -> list[Path]:
    """Merge the contents of ``src`` into ``dst`` and remove ``src``.

    Same-named directories are merged recursively, same-named .txt files are
    concatenated, and any other name collision leaves the source file where
    it is. Returns the source files left behind; ``src`` is only removed
    when nothing was left.
    """
    skipped: list[Path] = []
    for entry in sorted(src.iterdir()):
        target = dst / entry.name
        if entry.is_dir():
            if target.is_dir():
                skipped.extend(merge_dirs(entry, target))
            elif target.exists():
                logger.warning("Not merging %s: %s exists and is not a directory", entry, target)
                skipped.append(entry)
            else:
                shutil.move(str(entry), str(target))
        elif target.exists():
            if entry.suffix.lower() == ".txt" and target.is_file():
                _append_file(entry, target)
                entry.unlink()
            else:
                logger.warning("Not merging %s: %s already exists", entry, target)
                skipped.append(entry)
        else:
            shutil.move(str(entry), str(target))

    if skipped:
        logger.warning("Leaving %s in place: %d entries could not be merged", src, len(skipped))
    else:
        src.rmdir()
    return skipped


def _append_file(src: Path, dst: Path) -> None:
    data = src.read_text(encoding="utf-8")
    existing = dst.read_text(encoding="utf-8")
    separator = "\n" if existing and not existing.endswith("\n") and data else ""
    with dst.open("a", encoding="utf-8") as f:
        f.write(separator + data)


def rename_project_dir(project: Project, new_name: str, target: Project | None) -> list[Path]:
    """Apply the directory half of a project rename.

    Virtual projects have nothing on disk. A physical project is renamed in
    place when the target has no directory, and merged into the target's
    directory otherwise.
    """
    if project.dir_path is None:
        return []
    if target is not None and target.dir_path is not None:
        if target.dir_path == project.dir_path:
            return []
        logger.info("Merging %s into %s", project.dir_path, target.dir_path)
        return merge_dirs(project.dir_path, target.dir_path)
    new_path = project.dir_path.parent / new_name
    if new_path.exists():
        raise ProjectError(f"Cannot rename {project.dir_path}: {new_path} already exists")
    logger.info("Renaming %s to %s", project.dir_path, new_path)
    project.dir_path.rename(new_path)
    old_index = new_path / f"{project.name}.md"
    if old_index.exists() and not (new_path / f"{new_name}.md").exists():
        old_index.rename(new_path / f"{new_name}.md")
    return []


def rename_card_projects(card: Card, old: str, new: str) -> bool:
    """Rewrite a card's project list. Returns True when it changed.

    Names compare case-insensitively. When the card already lists ``new``,
    ``old`` is dropped; otherwise the first ``old`` is replaced in place.
    """
    old_key, new_key = old.lower(), new.lower()
    keys = [p.lower() for p in card.projects]
    if old_key not in keys:
        return False
    if new_key in keys and old_key != new_key:
        card.projects = [p for p in card.projects if p.lower() != old_key]
    else:
        card.projects[keys.index(old_key)] = new
    return True


def rename_project_references(old: str, new: str, store: TaskStore | None, boards: Iterable[Board]) -> int:
    """Replace ``old`` with ``new`` on every task and card. Returns the count changed."""
    changed = 0
    if store is not None:
        affected: set[Path] = set()
        for task in store.list():
            if task.has_project(old):
                task.remove_project(old)
                task.add_project(new)
                if task.file is not None:
                    affected.add(task.file)
                changed += 1
        for path in sorted(affected):
            store.write_file(path)
        if affected:
            store.reload()

    for board in boards:
        for card in board.all_cards():
            if rename_card_projects(card, old, new):
                write_card(card, board.card_path(card))
                changed += 1
    logger.info("Renamed project references %s -> %s on %d items", old, new, changed)
    return changed
