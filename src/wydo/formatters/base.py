"""Base formatter protocol."""

from typing import Any, Protocol, runtime_checkable

from wydo.models import Task


@runtime_checkable
class FormatterProtocol(Protocol):
    """Protocol for task output formatters.

    Returns a Rich-printable object (Table, str, etc.)
    """

    def format(self, items: list[Task]) -> Any:
        """Format tasks for output."""
        ...
