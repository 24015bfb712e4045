"""
JSON file helpers for the cache and the aggregate artifact.

Writes go through a temporary sibling file and an atomic
``replace`` so a reader never observes a half-written document and
concurrent writers of the same file resolve as last-write-wins.
"""

from __future__ import annotations

import json
import os
import pathlib
import uuid
from typing import Any

from fiosfon.utils.errors import MalformedDataError


def read_json(path: pathlib.Path) -> Any | None:
    """Load a JSON file.

    Returns:
        The parsed document, or ``None`` when the file does not exist.

    Raises:
        MalformedDataError: If the file exists but is not valid JSON.
    """
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedDataError(str(path), str(exc)) from exc


def write_text_atomic(path: pathlib.Path, text: str) -> None:
    """Write *text* to *path* via a temp file and atomic rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
    try:
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)
