"""todo.txt task store."""

from __future__ import annotations

import logging
import threading
from datetime import date
from pathlib import Path

from wydo.backends.utils import hash_task_line, parse_task_line
from wydo.errors import TaskFileLockedError, TaskMismatchError, TaskNotFoundError, WydoError
from wydo.models import DATE_FMT, Task
from wydo.scanner import TaskDirEntry

logger = logging.getLogger("wydo.tasks")

TODO_FILE = "todo.txt"
DONE_FILE = "done.txt"


def discover_txt_files(directory: Path) -> list[str]:
    try:
        return sorted(p.name for p in directory.iterdir() if p.is_file() and p.suffix.lower() == ".txt")
    except FileNotFoundError:
        return []


def read_task_text(path: Path) -> str:
    # newline="" keeps a lone "\r" inside its line
    with path.open(encoding="utf-8", newline="") as f:
        return f.read()


def split_task_lines(content: str) -> list[str]:
    """Split file content on newlines only; other Unicode separators stay in the line."""
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def load_task_file(path: Path, allow_mismatch: bool = False) -> list[Task]:
    """Load every task in ``path``. A missing file has no tasks.

    Raises TaskMismatchError on the first line that does not round-trip,
    unless ``allow_mismatch`` is set.
    """
    try:
        content = read_task_text(path)
    except FileNotFoundError:
        return []

    tasks = []
    for line_no, line in enumerate(split_task_lines(content), start=1):
        if not line.strip():
            continue
        try:
            task = parse_task_line(line, check=not allow_mismatch)
        except TaskMismatchError as e:
            raise TaskMismatchError(e.parsed, e.original, path=path, line_no=line_no) from None
        task.id = hash_task_line(line_no, path)
        task.file = path
        tasks.append(task)
    return tasks


def task_count(tasks: list[Task], project: str) -> tuple[int, int]:
    """(pending, done) counts of tasks tagged with ``project``."""
    pending = done = 0
    for task in tasks:
        if task.has_project(project):
            if task.done:
                done += 1
            else:
                pending += 1
    return pending, done


class TaskStore:
    """Tasks loaded from the .txt files of one workspace's task directories.

    Every read-modify-write runs under the store's lock. Mutations persist
    immediately and reload, so IDs always reflect current line positions.
    """

    def __init__(
        self,
        task_dirs: list[TaskDirEntry],
        allow_mismatch: bool = False,
        default_dir: Path | None = None,
        todo_file: str = TODO_FILE,
        done_file: str = DONE_FILE,
    ):
        self._lock = threading.RLock()
        self.task_dirs = [TaskDirEntry(path=d.path, files=list(d.files), project=d.project) for d in task_dirs]
        self.allow_mismatch = allow_mismatch
        self.default_dir = default_dir
        self.todo_file = todo_file
        self.done_file = done_file
        self.tasks: list[Task] = []
        self.load_errors: dict[Path, Exception] = {}
        self.reload()

    # Loading

    def reload(self) -> None:
        with self._lock:
            tasks: list[Task] = []
            errors: dict[Path, Exception] = {}
            for entry in self.task_dirs:
                files = discover_txt_files(entry.path)
                if files:
                    entry.files = files
                for path in entry.file_paths:
                    try:
                        tasks.extend(load_task_file(path, self.allow_mismatch))
                    except TaskMismatchError as e:
                        logger.warning("Not loading %s: %s", path, e)
                        errors[path] = e
                    except (OSError, UnicodeDecodeError) as e:
                        logger.warning("Could not read %s: %s", path, e)
                        errors[path] = e
            self.tasks = tasks
            self.load_errors = errors

    @property
    def files(self) -> list[Path]:
        return [path for entry in self.task_dirs for path in entry.file_paths]

    # Queries

    def list(self) -> list[Task]:
        with self._lock:
            return list(self.tasks)

    def list_by_project(self, project: str) -> list[Task]:
        with self._lock:
            return [t for t in self.tasks if t.has_project(project)]

    def list_by_context(self, context: str) -> list[Task]:
        with self._lock:
            return [t for t in self.tasks if t.has_context(context)]

    def list_pending(self) -> list[Task]:
        with self._lock:
            return [t for t in self.tasks if not t.done]

    def list_done(self) -> list[Task]:
        with self._lock:
            return [t for t in self.tasks if t.done]

    def get(self, id: str) -> Task:
        with self._lock:
            for task in self.tasks:
                if task.id == id:
                    return task
        raise TaskNotFoundError(f"Task not found: {id}")

    def projects(self) -> list[str]:
        with self._lock:
            seen: dict[str, None] = {}
            for task in self.tasks:
                for project in task.projects:
                    seen.setdefault(project)
            return list(seen)

    # Writing

    def _check_writable(self, *paths: Path | None) -> None:
        for path in paths:
            if path is not None and path in self.load_errors:
                raise TaskFileLockedError(
                    f"Refusing to write {path}: it failed to load ({self.load_errors[path]})"
                )

    def write_file(self, path: Path) -> None:
        """Rewrite ``path`` with its tasks in order; an emptied file is truncated."""
        with self._lock:
            self._check_writable(path)
            lines = [f"{task}\n" for task in self.tasks if task.file == path]
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("".join(lines), encoding="utf-8")
            logger.debug("Wrote %d tasks to %s", len(lines), path)

    def write_all(self) -> None:
        with self._lock:
            paths = {task.file for task in self.tasks if task.file is not None}
            self._check_writable(*paths)
            for path in sorted(paths):
                self.write_file(path)

    def _write_files(self, paths: set[Path | None]) -> None:
        targets = sorted(p for p in paths if p is not None)
        self._check_writable(*targets)
        for path in targets:
            self.write_file(path)

    def _done_path(self, task: Task) -> Path:
        if task.file is None:
            raise WydoError(f"Task {task.id} has no file")
        return task.file.parent / self.done_file

    def first_todo_file(self) -> Path | None:
        """First todo file across task dirs, else the first file of the first dir."""
        for entry in self.task_dirs:
            if self.todo_file in entry.files:
                return entry.path / self.todo_file
        if self.task_dirs and self.task_dirs[0].files:
            return self.task_dirs[0].file_paths[0]
        if self.default_dir is not None:
            return self.default_dir / self.todo_file
        return None

    def _ensure_dir_registered(self, path: Path) -> None:
        directory = path.parent
        if not any(entry.path == directory for entry in self.task_dirs):
            self.task_dirs.append(TaskDirEntry(path=directory, files=[path.name]))

    def add(self, raw_line: str, target: Path | None = None) -> Task:
        with self._lock:
            line = raw_line.strip()
            if not line:
                raise ValueError("empty task line")
            target = target or self.first_todo_file()
            if target is None:
                raise WydoError("No task file found in any task directory")
            self._check_writable(target)

            task = parse_task_line(line, check=False)
            existing = read_task_text(target) if target.exists() else ""
            prefix = "" if not existing or existing.endswith("\n") else "\n"
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("a", encoding="utf-8") as f:
                f.write(f"{prefix}{task}\n")
            logger.info("Added task to %s: %s", target, task)

            self._ensure_dir_registered(target)
            self.reload()
            task.id = hash_task_line(len(split_task_lines(existing)) + 1, target)
            task.file = target
            return task

    def update(self, task: Task) -> None:
        with self._lock:
            affected: set[Path | None] = {task.file}
            for idx, existing in enumerate(self.tasks):
                if existing.id == task.id:
                    affected.add(existing.file)
                    self.tasks[idx] = task
                    break
            else:
                if task.file is None:
                    task.file = self.first_todo_file()
                    if task.file is None:
                        raise WydoError("No task file found in any task directory")
                    affected.add(task.file)
                self.tasks.append(task)
            self._write_files(affected)
            self.reload()

    def complete(self, id: str) -> Task:
        """Mark a task done today and move it to its directory's done file."""
        with self._lock:
            task = self.get(id)
            source = task.file
            dest = self._done_path(task)
            self._check_writable(source, dest)
            task.done = True
            task.completion_date = date.today().strftime(DATE_FMT)
            task.file = dest
            self._write_files({source, dest})
            logger.info("Completed task %s", id)
            self._ensure_dir_registered(dest)
            self.reload()
            return task

    def delete(self, id: str) -> None:
        with self._lock:
            task = self.get(id)
            self._check_writable(task.file)
            self.tasks = [t for t in self.tasks if t.id != id]
            self._write_files({task.file})
            logger.info("Deleted task %s", id)
            self.reload()

    def archive(self) -> int:
        """Move every done task to its directory's done file."""
        with self._lock:
            moves = [
                (task, self._done_path(task))
                for task in self.tasks
                if task.done and task.file is not None and task.file != self._done_path(task)
            ]
            affected: set[Path | None] = set()
            for task, dest in moves:
                affected.update({task.file, dest})
            self._check_writable(*(p for p in affected if p is not None))

            for task, dest in moves:
                task.file = dest
            if moves:
                self._write_files(affected)
                for path in affected:
                    if path is not None:
                        self._ensure_dir_registered(path)
                self.reload()
            logger.info("Archived %d done tasks", len(moves))
            return len(moves)
