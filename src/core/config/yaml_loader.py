# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""YAML rule file loader.

Engine thresholds can be tuned per deployment without a code change by
pointing ADAPTIVE_RULES_FILE at a YAML document. Each engine component
reads its own top-level section.

Example:
    >>> from pathlib import Path
    >>> from src.core.config.yaml_loader import load_yaml
    >>> rules = load_yaml(Path("config/adaptive_rules.yaml"), section="difficulty")
"""

from pathlib import Path
from typing import Any

import yaml


class YAMLLoadError(Exception):
    """Raised when a YAML file cannot be loaded or parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load YAML file '{path}': {reason}")


def load_yaml(path: Path, section: str | None = None) -> dict[str, Any]:
    """Load a YAML mapping, optionally narrowed to one top-level section.

    Args:
        path: Path to the YAML file to load.
        section: Top-level key to return. A missing section yields an
            empty dict.

    Returns:
        The parsed mapping (empty for an empty file).

    Raises:
        YAMLLoadError: If the file doesn't exist, cannot be read, contains
            invalid YAML, or the root or section is not a mapping.
    """
    if not path.is_file():
        raise YAMLLoadError(path, "File does not exist or is not a file")

    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise YAMLLoadError(path, f"Cannot read file: {e}") from e
    except yaml.YAMLError as e:
        raise YAMLLoadError(path, f"Invalid YAML syntax: {e}") from e

    parsed = parsed or {}
    if not isinstance(parsed, dict):
        raise YAMLLoadError(
            path, f"YAML root must be a mapping, got {type(parsed).__name__}"
        )

    if section is None:
        return parsed

    value = parsed.get(section) or {}
    if not isinstance(value, dict):
        raise YAMLLoadError(path, f"'{section}' must be a mapping")
    return value
