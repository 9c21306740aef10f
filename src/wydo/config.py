"""Configuration: JSON file plus WYDO_* environment overrides."""

import json
import os
from pathlib import Path
from typing import Any

# Module-level cache for singleton pattern
_config_cache: "Config | None" = None


def clear_config_cache() -> None:
    """Clear the config cache. Useful for testing or config reload."""
    global _config_cache
    _config_cache = None


def get_default_config_dir() -> Path:
    """Get default config directory, respecting WYDO_CONFIG_DIR env var."""
    config_dir = os.environ.get("WYDO_CONFIG_DIR")
    if config_dir:
        return Path(config_dir)
    return Path.home() / ".config" / "wydo"


def default_workspace_dir() -> Path:
    return Path.home() / "wydo"


class ConfigMeta:
    """Schema definition - separate from runtime state."""

    SETTINGS: dict[str, str] = {
        "workspaces": "Workspace roots (comma-separated)",
        "todo_file": "Task file new tasks are added to",
        "done_file": "Task file completed tasks move to",
        "default_view": "Agenda view (day|week|month)",
        "default_format": "Output format (table|jsonl)",
        "debug_log": "Write debug.log in the config directory",
    }


class Config:
    """Runtime configuration with env override support."""

    DEFAULTS: dict[str, Any] = {
        "workspaces": "",  # Empty = ~/wydo
        "todo_file": "todo.txt",
        "done_file": "done.txt",
        "default_view": "day",
        "default_format": "table",
        "debug_log": False,
    }

    def __init__(self, config_dir: Path | None = None):
        self._config_dir = config_dir or get_default_config_dir()
        self._config_file = self._config_dir / "config.json"
        self._data: dict[str, Any] = {}
        # What config.json holds, without env overrides
        self._saved: dict[str, Any] = {}

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @classmethod
    def load(cls, config_dir: Path | None = None) -> "Config":
        """Factory method - explicit loading with caching."""
        global _config_cache

        if _config_cache is not None and config_dir is None:
            return _config_cache

        config = cls(config_dir)
        config._load_from_file()
        config._apply_env_overrides()

        if config_dir is None:
            _config_cache = config

        return config

    def __getattr__(self, name: str) -> Any:
        """Access config values as attributes."""
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._data:
            return self._data[name]
        if name in self.DEFAULTS:
            return self.DEFAULTS[name]
        raise AttributeError(f"Config has no attribute '{name}'")

    @property
    def workspace_dirs(self) -> list[Path]:
        """Configured workspace roots, or ~/wydo when none are set."""
        raw = self._data.get("workspaces", self.DEFAULTS["workspaces"])
        if isinstance(raw, list):
            entries = [str(p) for p in raw]
        else:
            entries = str(raw).split(",")
        dirs = [Path(p.strip()).expanduser() for p in entries if p.strip()]
        return dirs or [default_workspace_dir()]

    def coerce(self, key: str, value: str) -> Any:
        """Convert a command-line string to the type of the key's default."""
        return self._coerce(value, type(self.DEFAULTS[key]))

    def set(self, key: str, value: Any) -> None:
        """Set value and persist."""
        self._data[key] = value
        self._saved[key] = value
        self._save()

    def _load_from_file(self) -> None:
        if self._config_file.exists():
            try:
                content = self._config_file.read_text()
                if content.strip():
                    self._saved = json.loads(content)
                    self._data = dict(self._saved)
            except json.JSONDecodeError:
                # Corrupted config - use defaults, will be fixed on next save
                self._saved = {}
                self._data = {}

    def _save(self) -> None:
        self._config_dir.mkdir(parents=True, exist_ok=True)
        self._config_file.write_text(json.dumps(self._saved, indent=2))

    def _apply_env_overrides(self) -> None:
        """Apply WYDO_* env vars (highest priority)."""
        for key, default in self.DEFAULTS.items():
            env_key = f"WYDO_{key.upper()}"
            if env_key in os.environ:
                self._data[key] = self._coerce(os.environ[env_key], type(default))

    @staticmethod
    def _coerce(value: str, target_type: type) -> Any:
        """Coerce string env value to target type."""
        if target_type is bool:
            return value.lower() in ("true", "1", "yes")
        return value
