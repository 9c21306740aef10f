"""wydo - boards, todo.txt tasks, notes and projects in a plain-file workspace."""

__version__ = "0.1.0"
