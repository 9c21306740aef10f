"""Output formatters for wydo task listings."""

from .base import FormatterProtocol
from .jsonl import JsonlFormatter
from .table import TableFormatter

FORMATTERS: dict[str, type] = {
    "table": TableFormatter,
    "jsonl": JsonlFormatter,
}

DEFAULT_DATE_FMT = "%Y-%m-%d"


def get_formatter(format_str: str) -> FormatterProtocol:
    """Parse format string and return configured formatter.

    Format string syntax: <name>:<date_fmt>:<options>

    Examples:
        "table"             -> TableFormatter()
        "table:%m-%d"       -> TableFormatter(date_fmt="%m-%d")
        "table::noid"       -> TableFormatter(show_id=False)
        "jsonl"             -> JsonlFormatter()
    """
    parts = format_str.split(":")
    name = parts[0]

    if name not in FORMATTERS:
        available = list(FORMATTERS.keys())
        raise ValueError(f"Unknown format: {name}. Available: {', '.join(available)}")
    cls = FORMATTERS[name]

    if name == "table":
        date_fmt = parts[1] if len(parts) > 1 and parts[1] else DEFAULT_DATE_FMT
        show_id = not (len(parts) > 2 and parts[2] == "noid")
        return cls(date_fmt=date_fmt, show_id=show_id)

    return cls()


__all__ = [
    "FormatterProtocol",
    "TableFormatter",
    "JsonlFormatter",
    "FORMATTERS",
    "get_formatter",
]
