"""Shared utilities for task backends: the todo.txt line codec."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path

from wydo.errors import TaskMismatchError
from wydo.models import Task

# Line grammar, each prefix segment optional:
#   [x ][(A) ][<completion yyyy-mm-dd> ][<created yyyy-mm-dd> ]<name tokens>
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
PRIORITY_PATTERN = re.compile(r"^\(([A-Z])\)$")
TAG_PATTERN = re.compile(r"^([^\s:+@][^\s:]*):(\S+)$")


def hash_task_line(line_no: int, path: Path | str) -> str:
    """Stable 10-char task ID from the physical line position and file path.

    Content is not part of the hash, so editing a line in place keeps its ID.
    """
    return hashlib.sha1(f"{line_no}:{path}".encode()).hexdigest()[:10]


def _is_tag(token: str) -> bool:
    match = TAG_PATTERN.match(token)
    # URLs stay in the name
    return bool(match) and not match.group(2).startswith("//")


def parse_task_line(line: str, check: bool = True) -> Task:
    """Parse one todo.txt line into a Task.

    With ``check`` set, raises TaskMismatchError when the parsed task does not
    serialize back to exactly ``line``.
    """
    tokens = line.split(" ")
    task = Task(name="")
    i = 0

    def has_more() -> bool:
        # A prefix segment only counts when something follows it
        return i + 1 < len(tokens)

    if tokens[i] == "x" and has_more():
        task.done = True
        i += 1

    match = PRIORITY_PATTERN.match(tokens[i])
    if match and has_more():
        task.priority = match.group(1)
        i += 1

    if task.done and DATE_PATTERN.match(tokens[i]) and has_more():
        task.completion_date = tokens[i]
        i += 1

    if DATE_PATTERN.match(tokens[i]) and has_more():
        task.created_date = tokens[i]
        i += 1

    words: list[str] = []
    for token in tokens[i:]:
        if len(token) > 1 and token[0] == "+":
            task.add_project(token[1:])
        elif len(token) > 1 and token[0] == "@":
            task.add_context(token[1:])
        elif _is_tag(token):
            key, value = token.split(":", 1)
            task.tags[key] = value
        else:
            words.append(token)
    task.name = " ".join(words)

    if check:
        formatted = format_task_line(task)
        if formatted != line:
            raise TaskMismatchError(formatted, line)
    return task


def format_task_line(task: Task) -> str:
    """Serialize a Task to its todo.txt line."""
    parts: list[str] = []
    if task.done:
        parts.append("x")
    if task.priority:
        parts.append(f"({task.priority})")
    if task.done and task.completion_date:
        parts.append(task.completion_date)
    if task.created_date:
        parts.append(task.created_date)
    if task.name:
        parts.append(task.name)
    parts.extend(f"+{p}" for p in task.projects)
    parts.extend(f"@{c}" for c in task.contexts)
    parts.extend(f"{k}:{v}" for k, v in task.tags.items())
    return " ".join(parts)
