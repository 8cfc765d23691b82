"""Filename generation and root resolution helpers for local storage."""

from __future__ import annotations

import re
import time
from pathlib import Path
from typing import Optional

_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9.]')
FALLBACK_NAME = 'document'


def sanitize_name(original_name: Optional[str]) -> str:
    """Replace every character outside [A-Za-z0-9.] with an underscore.

    Path separators are replaced like any other character, so the result is
    always a single path component. A name made only of dots and underscores
    becomes FALLBACK_NAME.
    """
    safe = _UNSAFE_CHARS.sub('_', original_name or '')
    if not safe.strip('._'):
        return FALLBACK_NAME
    return safe


def current_millis() -> int:
    return int(time.time() * 1000)


def build_filename(original_name: Optional[str], millis: Optional[int] = None) -> str:
    """`<epoch millis>-<sanitized original name>`."""
    if millis is None:
        millis = current_millis()
    return f"{millis}-{sanitize_name(original_name)}"


def effective_root(configured_root: Optional[str], default_root: str) -> str:
    """Configured root, or the default root when unset/blank."""
    if configured_root is None or not str(configured_root).strip():
        return default_root
    return str(configured_root).strip()


def path_in_root(root: str, filename: str) -> Optional[Path]:
    """Resolve filename directly under root; None if it would escape the root."""
    if not filename or filename in ('.', '..') or '/' in filename or '\\' in filename:
        return None
    root_path = Path(root).resolve()
    candidate = (root_path / filename).resolve()
    try:
        candidate.relative_to(root_path)
    except ValueError:
        return None
    return candidate
