"""Tests for loading workspaces and workspace-level project operations."""

from pathlib import Path

import pytest

from wydo.backends.kanban import read_card
from wydo.errors import ProjectError, ProjectNotFoundError, TaskMismatchError
from wydo.workspace import Workspace, load_workspaces


class TestLoad:
    def test_loads_every_entity_kind(self, workspace_root: Path):
        ws = Workspace.load(workspace_root)

        assert ws.root == workspace_root.resolve()
        assert [b.name for b in ws.boards] == ["Sprint"]
        assert sorted(t.name for t in ws.tasks) == ["Call mom", "Pay rent", "Review PR", "Write report"]
        assert [n.title for n in ws.notes] == ["standup"]
        assert [p.name for p in ws.projects] == ["family", "home", "work"]
        assert ws.projects.get("work").dir_path == ws.root / "projects" / "work"
        assert ws.load_errors == {}
        assert len(ws.task_dirs) == 2

    def test_missing_root_is_empty(self, tmp_path: Path):
        ws = Workspace.load(tmp_path / "missing")
        assert ws.boards == []
        assert ws.tasks == []
        assert len(ws.projects) == 0

    def test_malformed_task_file_reported(self, workspace_root: Path, write):
        write(workspace_root / "tasks" / "bad.txt", "buy +groceries milk\n")

        ws = Workspace.load(workspace_root)

        [(path, error)] = ws.load_errors.items()
        assert path.name == "bad.txt"
        assert isinstance(error, TaskMismatchError)
        assert "Call mom" in [t.name for t in ws.tasks]

    def test_get_board(self, workspace_root: Path):
        ws = Workspace.load(workspace_root)
        assert ws.get_board("sprint").name == "Sprint"
        assert ws.get_board("SPRINT").name == "Sprint"
        assert ws.get_board("nope") is None

    def test_get_project(self, workspace_root: Path):
        ws = Workspace.load(workspace_root)
        assert ws.get_project("work").name == "work"
        with pytest.raises(ProjectNotFoundError):
            ws.get_project("nope")

    def test_reload_returns_fresh_snapshot(self, workspace_root: Path):
        ws = Workspace.load(workspace_root)
        (workspace_root / "tasks" / "todo.txt").write_text("Only one\n")

        fresh = ws.reload()

        assert fresh is not ws
        assert "Only one" in [t.name for t in fresh.tasks]
        assert "Call mom" in [t.name for t in ws.tasks]


def test_load_workspaces_dedups(workspace_root: Path, tmp_path: Path):
    other = tmp_path / "other"
    other.mkdir()
    workspaces = load_workspaces([workspace_root, other, workspace_root / "." ])
    assert [ws.root for ws in workspaces] == [workspace_root.resolve(), other.resolve()]


class TestRenameProject:
    def test_physical_rename(self, workspace_root: Path):
        ws = Workspace.load(workspace_root)

        renamed = ws.rename_project("work", "job")

        root = renamed.root
        assert not (root / "projects" / "work").exists()
        assert (root / "projects" / "job" / "job.md").exists()
        assert (root / "projects" / "job" / "tasks" / "todo.txt").read_text() == "Review PR +job\n"
        assert (root / "tasks" / "todo.txt").read_text() == (
            "(A) Call mom +family due:2026-02-06\nWrite report +job @office\n"
        )
        assert read_card(root / "boards" / "sprint" / "cards" / "ship_it.md").projects == ["job"]
        assert "work" not in renamed.projects
        assert renamed.projects.get("job").dir_path == root / "projects" / "job"

    def test_rerun_is_a_no_op(self, workspace_root: Path):
        renamed = Workspace.load(workspace_root).rename_project("work", "job")
        before = (renamed.root / "tasks" / "todo.txt").read_text()

        again = renamed.rename_project("work", "job")

        assert (again.root / "tasks" / "todo.txt").read_text() == before
        assert read_card(again.root / "boards" / "sprint" / "cards" / "ship_it.md").projects == ["job"]
        assert [p.name for p in again.projects] == ["family", "home", "job"]

    def test_merge_into_existing_project(self, workspace_root: Path, write):
        write(workspace_root / "projects" / "job" / "tasks" / "todo.txt", "Deploy +job\n")
        ws = Workspace.load(workspace_root)

        merged = ws.rename_project("work", "job")

        root = merged.root
        assert not (root / "projects" / "work").exists()
        assert (root / "projects" / "job" / "tasks" / "todo.txt").read_text() == (
            "Deploy +job\nReview PR +job\n"
        )
        assert (root / "projects" / "job" / "work.md").exists()
        assert len([p for p in merged.projects if p.name == "job"]) == 1

    def test_virtual_rename_only_touches_tags(self, workspace_root: Path):
        renamed = Workspace.load(workspace_root).rename_project("family", "kin")

        assert (renamed.root / "tasks" / "todo.txt").read_text().startswith("(A) Call mom +kin")
        assert not (renamed.root / "projects" / "kin").exists()
        assert renamed.projects.get("kin").is_virtual

    def test_same_name_is_a_no_op(self, workspace_root: Path):
        ws = Workspace.load(workspace_root)
        assert ws.rename_project("work", "work") is ws


class TestArchiveProject:
    def test_archive_and_unarchive(self, workspace_root: Path):
        ws = Workspace.load(workspace_root)

        ws.set_project_archived("work", True)
        assert ws.reload().projects.get("work").archived is True

        ws.set_project_archived("work", False)
        assert ws.reload().projects.get("work").archived is False

    def test_virtual_project_refused(self, workspace_root: Path):
        with pytest.raises(ProjectError):
            Workspace.load(workspace_root).set_project_archived("family", True)
