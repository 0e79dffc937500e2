"""Semantic search capability consumed by the hybrid engine.

The embedding index lives outside this package. The hybrid engine only needs
something that can say whether it is usable right now and, given a query and
a limit, return scored passages. Cancellation is the awaiting task's
cancellation; implementations must not retry once cancelled.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional

SnippetFn = Callable[[str, int, int], str]


@dataclass
class SemanticResult:
    """A scored code passage from the embedding index."""
    path: str
    start_line: int
    end_line: int
    snippet: str
    score: float


@dataclass
class SemanticSearchResult:
    """Semantic candidates plus the capability state at query time.

    ``available`` is ``False`` when the provider could not serve the query
    (e.g. the embedding model is offline). That is a state, not an error.
    """
    available: bool
    results: List[SemanticResult] = field(default_factory=list)
    error: Optional[str] = None


class SemanticSearcher(ABC):
    """Abstract semantic search capability."""

    @abstractmethod
    def available(self) -> bool:
        """Whether an embedding provider is configured and reachable."""
        pass

    @abstractmethod
    async def search_with_context(self, query: str, limit: int) -> SemanticSearchResult:
        """Return up to ``limit`` passages using the index's stored snippets."""
        pass

    @abstractmethod
    async def search_with_snippets(
        self,
        query: str,
        limit: int,
        snippet_fn: SnippetFn
    ) -> SemanticSearchResult:
        """Return up to ``limit`` passages with snippets from ``snippet_fn``."""
        pass


class SemanticSearchError(Exception):
    """The semantic capability failed, timed out, or raised."""
    pass
