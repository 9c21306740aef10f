"""Tests for the project registry and project directory operations."""

from pathlib import Path

import pytest

from wydo.backends import TaskStore
from wydo.backends.kanban import read_card
from wydo.errors import ProjectError
from wydo.frontmatter import parse_front_matter
from wydo.kanban import create_board, create_card_from_task
from wydo.models import Board, Card, Column, Note, Project, Task
from wydo.projects import (
    ProjectRegistry,
    merge_dirs,
    rename_card_projects,
    rename_project_dir,
    rename_project_references,
    set_project_archived,
)
from wydo.scanner import ProjectEntry, TaskDirEntry

WS = Path("/ws")


class TestRegistryBuild:
    def test_discovery_merges_into_one_physical_project(self):
        board = Board(
            name="b", path=WS / "boards" / "b", columns=[Column("To Do", [Card("c.md", projects=["work"])])]
        )
        registry = ProjectRegistry.build(
            [ProjectEntry("work", WS / "projects" / "work")],
            [Task(name="t", projects=["work", "home"])],
            [board],
        )

        assert len(registry) == 2
        assert registry.get("work").dir_path == WS / "projects" / "work"
        assert registry.get("home").is_virtual
        assert [p.name for p in registry] == ["home", "work"]
        assert "work" in registry
        assert "nope" not in registry

    def test_directory_fills_in_a_virtual_entry(self):
        registry = ProjectRegistry()
        registry.ensure("work")
        registry.ensure("work", WS / "projects" / "work", parent="clients")

        project = registry.get("work")
        assert project.dir_path == WS / "projects" / "work"
        assert project.parent == "clients"

    def test_first_directory_wins(self):
        registry = ProjectRegistry()
        registry.ensure("work", WS / "a" / "projects" / "work")
        registry.ensure("work", WS / "b" / "projects" / "work")
        assert registry.get("work").dir_path == WS / "a" / "projects" / "work"

    def test_children_linked(self):
        registry = ProjectRegistry.build(
            [
                ProjectEntry("work", WS / "projects" / "work"),
                ProjectEntry("web", WS / "projects" / "work" / "projects" / "web", parent="work"),
                ProjectEntry("api", WS / "projects" / "work" / "projects" / "api", parent="work"),
            ],
            [],
            [],
        )
        assert registry.get("work").children == ["api", "web"]
        assert registry.get("web").parent == "work"

    def test_archived_read_from_index_note(self, tmp_path: Path, write):
        write(tmp_path / "projects" / "old" / "old.md", "---\narchived: true\n---\n\n# old\n")
        write(tmp_path / "projects" / "live" / "live.md", "# live\n")

        registry = ProjectRegistry.build(
            [
                ProjectEntry("old", tmp_path / "projects" / "old"),
                ProjectEntry("live", tmp_path / "projects" / "live"),
            ],
            [],
            [],
        )

        assert registry.get("old").archived is True
        assert registry.get("live").archived is False


class TestRegistryMembership:
    @pytest.fixture
    def registry(self) -> ProjectRegistry:
        registry = ProjectRegistry()
        registry.ensure("work", WS / "projects" / "work")
        registry.ensure("web", WS / "projects" / "work" / "projects" / "web", parent="work")
        registry.ensure("home")
        return registry

    def test_tasks_and_cards(self, registry):
        tasks = [Task(name="a", projects=["work"]), Task(name="b", projects=["home"])]
        board = Board(
            name="b",
            path=WS / "boards" / "b",
            columns=[Column("To Do", [Card("x.md", projects=["WORK"]), Card("y.md")])],
        )

        assert [t.name for t in registry.tasks_for_project("work", tasks)] == ["a"]
        assert [c.filename for c in registry.cards_for_project("work", [board])] == ["x.md"]

    def test_notes_and_boards_by_directory(self, registry):
        inside = Note("n", WS / "projects" / "work" / "2026-02-06.md", "x", None)
        outside = Note("o", WS / "notes" / "2026-02-06.md", "y", None)
        board = Board(name="roadmap", path=WS / "projects" / "work" / "boards" / "roadmap")

        assert registry.notes_for_project("work", [inside, outside]) == [inside]
        assert registry.boards_for_project("work", [board]) == [board]
        assert registry.boards_for_project("home", [board]) == []
        assert registry.notes_for_project("missing", [inside]) == []

    def test_projects_for_board_innermost_first(self, registry):
        path = WS / "projects" / "work" / "projects" / "web" / "boards" / "b"
        assert registry.projects_for_board(path) == ["web", "work"]
        assert registry.projects_for_board(WS / "boards" / "b") == []

    def test_projects_dirs(self, registry):
        assert registry.projects_dirs(WS) == [
            WS / "projects" / "work" / "projects",
            WS / "projects",
        ]
        assert ProjectRegistry().projects_dirs(WS) == [WS / "projects"]


class TestSetProjectArchived:
    def test_creates_index_note(self, tmp_path: Path):
        project = Project("work", dir_path=tmp_path)

        set_project_archived(project, True)

        meta, body = parse_front_matter((tmp_path / "work.md").read_text())
        assert meta == {"archived": True}
        assert body == "# work\n"
        assert project.archived is True

    def test_preserves_other_keys(self, tmp_path: Path, write):
        write(tmp_path / "work.md", "---\nowner: sam\narchived: true\n---\n\n# Work\n\nNotes.\n")

        set_project_archived(Project("work", dir_path=tmp_path), False)

        meta, body = parse_front_matter((tmp_path / "work.md").read_text())
        assert meta == {"owner": "sam"}
        assert body == "# Work\n\nNotes.\n"

    def test_virtual_project_raises(self):
        with pytest.raises(ProjectError):
            set_project_archived(Project("home"), True)


class TestMergeDirs:
    def test_merge(self, tmp_path: Path, write):
        src, dst = tmp_path / "src", tmp_path / "dst"
        write(src / "tasks" / "todo.txt", "a\n")
        write(src / "notes.md", "from src\n")
        write(src / "sub" / "idea.md", "idea\n")
        write(dst / "tasks" / "todo.txt", "b")
        write(dst / "notes.md", "from dst\n")

        skipped = merge_dirs(src, dst)

        assert skipped == [src / "notes.md"]
        assert (dst / "tasks" / "todo.txt").read_text() == "b\na\n"
        assert (dst / "notes.md").read_text() == "from dst\n"
        assert (dst / "sub" / "idea.md").read_text() == "idea\n"
        assert not (src / "tasks").exists()
        assert (src / "notes.md").read_text() == "from src\n"

    def test_clean_merge_removes_source(self, tmp_path: Path, write):
        src, dst = tmp_path / "src", tmp_path / "dst"
        write(src / "tasks" / "done.txt", "x 2026-01-01 old\n")
        dst.mkdir()

        assert merge_dirs(src, dst) == []
        assert not src.exists()
        assert (dst / "tasks" / "done.txt").read_text() == "x 2026-01-01 old\n"


class TestRenameProjectDir:
    def test_rename_in_place(self, tmp_path: Path, write):
        old_dir = tmp_path / "projects" / "old"
        write(old_dir / "old.md", "# old\n")
        write(old_dir / "tasks" / "todo.txt", "a +old\n")

        assert rename_project_dir(Project("old", dir_path=old_dir), "new", None) == []

        new_dir = tmp_path / "projects" / "new"
        assert not old_dir.exists()
        assert (new_dir / "new.md").exists()
        assert (new_dir / "tasks" / "todo.txt").exists()

    def test_existing_path_raises(self, tmp_path: Path):
        (tmp_path / "projects" / "old").mkdir(parents=True)
        (tmp_path / "projects" / "new").mkdir()

        with pytest.raises(ProjectError):
            rename_project_dir(Project("old", dir_path=tmp_path / "projects" / "old"), "new", None)

    def test_merge_into_physical_target(self, tmp_path: Path, write):
        write(tmp_path / "old" / "tasks" / "todo.txt", "a\n")
        write(tmp_path / "new" / "tasks" / "todo.txt", "b\n")

        rename_project_dir(
            Project("old", dir_path=tmp_path / "old"),
            "new",
            Project("new", dir_path=tmp_path / "new"),
        )

        assert (tmp_path / "new" / "tasks" / "todo.txt").read_text() == "b\na\n"
        assert not (tmp_path / "old").exists()

    def test_virtual_project_has_nothing_to_move(self):
        assert rename_project_dir(Project("old"), "new", None) == []


class TestRenameCardProjects:
    def test_replace_in_place(self):
        card = Card("c.md", projects=["Old", "x"])
        assert rename_card_projects(card, "old", "new") is True
        assert card.projects == ["new", "x"]

    def test_drop_when_target_present(self):
        card = Card("c.md", projects=["old", "New"])
        assert rename_card_projects(card, "old", "new") is True
        assert card.projects == ["New"]

    def test_case_only_rename(self):
        card = Card("c.md", projects=["work"])
        assert rename_card_projects(card, "work", "Work") is True
        assert card.projects == ["Work"]

    def test_unrelated_card(self):
        card = Card("c.md", projects=["x"])
        assert rename_card_projects(card, "old", "new") is False
        assert card.projects == ["x"]


def test_rename_project_references(tmp_path: Path, write):
    tasks_dir = tmp_path / "tasks"
    write(tasks_dir / "todo.txt", "a +old\nb +other\nc +old +new\n")
    store = TaskStore([TaskDirEntry(path=tasks_dir, files=["todo.txt"])])
    board = create_board(tmp_path / "boards", "Board")
    card = create_card_from_task(board, "Card", projects=["Old"])

    changed = rename_project_references("old", "new", store, [board])

    assert changed == 3
    assert (tasks_dir / "todo.txt").read_text() == "a +new\nb +other\nc +new\n"
    assert read_card(board.card_path(card)).projects == ["new"]
    assert rename_project_references("old", "new", store, [board]) == 0
