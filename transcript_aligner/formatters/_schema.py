"""Bundled JSON schema loading, cached per schema file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

_SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schemas"

_CACHED_SCHEMAS: dict[str, dict[str, Any]] = {}


def get_schema(filename: str) -> dict[str, Any]:
    """Load a schema from the bundled schemas/ directory.

    Cached at module level after first call to avoid repeated I/O.
    """
    if filename not in _CACHED_SCHEMAS:
        with open(_SCHEMA_DIR / filename, encoding="utf-8") as f:
            _CACHED_SCHEMAS[filename] = json.load(f)
    return _CACHED_SCHEMAS[filename]
