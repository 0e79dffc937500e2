"""Base line matcher interface.

Defines the abstract contract the hybrid engine depends on, independent of
how the external line-matching tool is driven (structured JSON output or
plain ``path:line:content`` text).

Matchers are synchronous: they own a child process for the duration of one
call and return once it has exited.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

DEFAULT_LIMIT = 20
MAX_SCORE = 100
INVALID_QUERY_MESSAGE = "invalid search pattern or parameters"


@dataclass
class Match:
    """A single-line keyword hit."""
    path: str
    line_start: int
    line_end: int
    snippet: str
    score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class KeywordSearchResult:
    """Ordered keyword matches, best first."""
    results: List[Match] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"results": [m.to_dict() for m in self.results]}


class LineMatcher(ABC):
    """Abstract base class for keyword line matchers.

    Implementations must rank matches by emission order (first match scores
    ``MAX_SCORE``, each later one less) and apply the exit-code policy:
    ``1`` means "no matches", ``2`` means the query was rejected.
    """

    @abstractmethod
    def search(self, query: str, root: str, limit: int = DEFAULT_LIMIT) -> KeywordSearchResult:
        """Search ``root`` for lines matching ``query``.

        Returns
        - At most ``limit`` matches (``limit <= 0`` means ``DEFAULT_LIMIT``)

        Raises
        - ``InvalidQueryError`` when the tool rejects the query
        - ``BackendFailureError`` on any other failure without partial results
        """
        pass


class LineMatchError(Exception):
    """Base exception for keyword backend operations."""
    pass


class InvalidQueryError(LineMatchError):
    """The line-matching tool rejected the query or its arguments."""
    pass


class BackendFailureError(LineMatchError):
    """The line-matching tool could not be run or failed."""
    pass


def normalize_limit(limit: int) -> int:
    return limit if limit > 0 else DEFAULT_LIMIT


def has_root(root: str) -> bool:
    """Whether ``root`` should be passed to the tool and used for relativizing."""
    return bool(root) and root != "."


def relativize(path: str, root: str) -> str:
    """Make ``path`` relative to ``root``, or return it unchanged if impossible.

    Mixing an absolute path with a relative root (or the reverse) has no
    meaningful relative form, and on Windows paths on different drives
    cannot be related at all.
    """
    if not has_root(root):
        return path
    if os.path.isabs(path) != os.path.isabs(root):
        return path
    try:
        return os.path.relpath(path, root)
    except ValueError:
        return path
