"""Base task service protocol."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from wydo.models import Task


@runtime_checkable
class TaskService(Protocol):
    """Capability interface for task storage.

    The agenda engine and CLI depend on this, not on a concrete store.
    """

    def list(self) -> list[Task]:
        """All loaded tasks, pending and done."""
        ...

    def list_by_project(self, project: str) -> list[Task]: ...

    def list_by_context(self, context: str) -> list[Task]: ...

    def list_pending(self) -> list[Task]: ...

    def list_done(self) -> list[Task]: ...

    def get(self, id: str) -> Task:
        """Get a task by ID. Raises TaskNotFoundError."""
        ...

    def add(self, raw_line: str, target: Path | None = None) -> Task:
        """Append a new task line and return the parsed task."""
        ...

    def update(self, task: Task) -> None:
        """Replace the task with the same ID and persist it."""
        ...

    def complete(self, id: str) -> Task:
        """Mark done and move to the directory's done file."""
        ...

    def delete(self, id: str) -> None: ...

    def archive(self) -> int:
        """Move all done tasks to done files. Returns the number moved."""
        ...

    def projects(self) -> list[str]:
        """Distinct +project names across loaded tasks."""
        ...

    def reload(self) -> None: ...
