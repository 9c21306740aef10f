"""Storage backends for tasks, boards and notes."""

from .base import TaskService
from .todotxt import TaskStore

__all__ = [
    "TaskService",
    "TaskStore",
]
