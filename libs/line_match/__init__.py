"""Keyword line matchers backed by an external line-matching tool.

Primary components:
- ``base``: abstract ``LineMatcher`` interface, ``Match`` and errors.
- ``ripgrep``: JSON-streaming and plain-text ripgrep strategies.
- ``factory``: helpers to construct a matcher from a type name or settings.
"""

from .base import (
    BackendFailureError,
    InvalidQueryError,
    KeywordSearchResult,
    LineMatcher,
    LineMatchError,
    Match,
)
from .factory import create_line_matcher, create_line_matcher_from_settings
from .ripgrep import RipgrepJSONMatcher, RipgrepTextMatcher

__all__ = [
    "BackendFailureError",
    "InvalidQueryError",
    "KeywordSearchResult",
    "LineMatcher",
    "LineMatchError",
    "Match",
    "RipgrepJSONMatcher",
    "RipgrepTextMatcher",
    "create_line_matcher",
    "create_line_matcher_from_settings",
]
