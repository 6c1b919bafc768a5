"""Tolerant lookups over generic parsed-document trees.

Parsed XML (see `pipeline.parsers.text_extraction.xml_to_node`) and JSON payloads
are nested dicts/lists whose shape varies from one document to the next.
These helpers replace chains of per-level null checks with a single lookup
that either yields a value or `default`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


def ensure_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def get_path(node: Any, path: str | Sequence[str], default: Any = None) -> Any:
    """Walk `path` through nested mappings.

    `path` is either a dotted string ("meta.identification") or a sequence of
    keys; keys may themselves contain ':' (e.g. "scl:JOLUXWork"). Any missing
    key or non-mapping intermediate value yields `default`.
    """
    segments = path.split(".") if isinstance(path, str) else list(path)

    current = node
    for segment in segments:
        if not isinstance(current, dict) or segment not in current:
            return default
        current = current[segment]

    return default if current is None else current
