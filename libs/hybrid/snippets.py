"""File-backed snippet extraction for semantic candidates."""

import os
from itertools import islice
from typing import Optional

from libs.common.config import SearchSettings

from .semantic import SnippetFn

DEFAULT_MAX_CHARS = 500


def file_snippet_fn(root: Optional[str] = None, max_chars: int = DEFAULT_MAX_CHARS) -> SnippetFn:
    """Build a ``(path, start, end) -> text`` callable reading from disk.

    Relative paths are resolved against ``root`` when given. Lines are
    1-based and inclusive. Text longer than ``max_chars`` is cut and suffixed
    with ``...``. Unreadable files yield an inline ``[Error reading ...]``
    marker instead of raising.
    """
    if max_chars <= 0:
        max_chars = DEFAULT_MAX_CHARS

    def snippet(path: str, start: int, end: int) -> str:
        full_path = path
        if root and not os.path.isabs(path):
            full_path = os.path.join(root, path)

        first = max(start, 1)
        try:
            with open(full_path, "r", encoding="utf-8", errors="replace") as f:
                lines = list(islice(f, first - 1, max(end, first)))
        except OSError as e:
            return f"[Error reading {path}: {e.strerror or e}]"

        text = "".join(lines).rstrip("\r\n")
        if len(text) > max_chars:
            text = text[:max_chars] + "..."
        return text

    return snippet


def file_snippet_fn_from_settings(settings: SearchSettings, root: Optional[str] = None) -> SnippetFn:
    """Snippet function honoring ``RS_SNIPPET_MAX_CHARS``."""
    return file_snippet_fn(root, max_chars=settings.rs_snippet_max_chars)
