"""Pytest fixtures for wydo tests."""

from pathlib import Path

import pytest

SPRINT_BOARD = """# Sprint

## To Do

[Ship it](./cards/ship_it.md)

## Done

[Old release](./cards/old_release.md)
"""

SHIP_IT_CARD = """---
tags:
- release
projects:
- work
due: '2026-02-06'
priority: 2
---

# Ship it

Cut the release branch.
"""

OLD_RELEASE_CARD = """---
due: '2026-02-06'
date_completed: '2026-02-05T17:30:00+01:00'
---

# Old release
"""


@pytest.fixture(autouse=True)
def clear_caches(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Clear module-level caches and isolate the config dir for each test."""
    from wydo.config import clear_config_cache

    monkeypatch.setenv("WYDO_CONFIG_DIR", str(tmp_path / ".config" / "wydo"))
    for key in ("WYDO_WORKSPACES", "WYDO_DEBUG_LOG", "WYDO_DEFAULT_VIEW", "WYDO_DEFAULT_FORMAT"):
        monkeypatch.delenv(key, raising=False)
    clear_config_cache()

    yield

    clear_config_cache()


@pytest.fixture
def write():
    """Write ``content`` to ``path``, creating parent directories."""

    def _write(path: Path, content: str = "") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def workspace_root(tmp_path: Path, write) -> Path:
    """A small workspace with every entity kind.

    tasks/todo.txt            two pending tasks, one due 2026-02-06
    tasks/done.txt            one completed task
    boards/sprint/            To Do + Done, one card each
    projects/work/            physical project with its own tasks
    notes/2026-02-06-standup.md
    """
    root = tmp_path / "ws"
    write(root / "tasks" / "todo.txt", "(A) Call mom +family due:2026-02-06\nWrite report +work @office\n")
    write(root / "tasks" / "done.txt", "x 2026-02-01 Pay rent +home\n")
    write(root / "boards" / "sprint" / "board.md", SPRINT_BOARD)
    write(root / "boards" / "sprint" / "cards" / "ship_it.md", SHIP_IT_CARD)
    write(root / "boards" / "sprint" / "cards" / "old_release.md", OLD_RELEASE_CARD)
    write(root / "projects" / "work" / "work.md", "# work\n")
    write(root / "projects" / "work" / "tasks" / "todo.txt", "Review PR +work\n")
    write(root / "notes" / "2026-02-06-standup.md", "# Standup\n")
    return root
