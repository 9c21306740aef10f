"""Exception types raised by wydo."""

from __future__ import annotations

from pathlib import Path


class WydoError(Exception):
    """Base class for wydo errors."""

    pass


class TaskMismatchError(WydoError):
    """Raised when a task line does not survive a parse/serialize round trip.

    Files containing such a line are excluded from the load and are not
    written back.
    """

    def __init__(
        self,
        parsed: str,
        original: str,
        path: Path | str | None = None,
        line_no: int | None = None,
    ):
        self.parsed = parsed
        self.original = original
        self.path = Path(path) if path else None
        self.line_no = line_no
        location = ""
        if self.path is not None:
            location = f" in {self.path}" + (f":{line_no}" if line_no else "")
        super().__init__(f"malformed task{location}\nparsed: {parsed}\noriginal: {original}")


class TaskNotFoundError(WydoError, KeyError):
    """Raised when a task ID is unknown."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Task not found"


class TaskFileLockedError(WydoError):
    """Raised when writing a task file that failed to load."""

    pass


class ProjectError(WydoError):
    """Raised for invalid project operations."""

    pass


class ProjectNotFoundError(ProjectError, KeyError):
    """Raised when a project name is unknown."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Project not found"


class BoardError(WydoError, ValueError):
    """Raised for invalid board, column, or card operations."""

    pass
