"""Global settings management for gitreplay.

This module handles the global config file at ~/.gitreplay/config.yml.
For repository-specific configuration, see config.py.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

# Global config file path
CONFIG_PATH = Path.home() / ".gitreplay" / "config.yml"


def get_settings(path: Path | None = None) -> dict[str, Any]:
    """Get the current gitreplay settings.

    Settings file format (~/.gitreplay/config.yml):
    ```yaml
    chunk_size: 4
    sink: jsonl
    ignore:
      - "*.lock"
      - dist/
    ```

    Returns:
        The settings dict, or empty dict if not exists.
    """
    path = path or CONFIG_PATH
    if not path.exists():
        return {}

    try:
        content = path.read_text()
        settings = yaml.safe_load(content) or {}
    except (yaml.YAMLError, OSError):
        return {}
    return settings if isinstance(settings, dict) else {}


def save_settings(settings: dict[str, Any], path: Path | None = None) -> None:
    """Save the gitreplay settings.

    Args:
        settings: The settings dict to save.
    """
    path = path or CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(settings, default_flow_style=False, sort_keys=False))


def ignore_patterns(settings: dict[str, Any]) -> list[str]:
    """Ignore patterns from settings, accepting a list or a text block."""
    patterns = settings.get("ignore") or []
    if isinstance(patterns, str):
        return patterns.splitlines()
    return [str(p) for p in patterns]
