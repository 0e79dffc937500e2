"""Hybrid keyword + semantic search.

Runs the keyword line matcher, then (when available) the semantic searcher,
and merges both into one list keyed by exact location. Scores are additive:
a keyword hit contributes ``keyword_weight`` and a semantic hit contributes
``semantic_weight * similarity``. A location found by both sources carries
the sum and is tagged ``both``. The score is a relative ranking signal with
no fixed range.

Two hits are the same finding only when path, start line and end line are
all equal; overlapping ranges stay separate entries.
"""

import asyncio
import dataclasses
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Dict, List, Optional

import structlog

from libs.common.config import SearchSettings
from libs.common.logging import log_performance
from libs.common.metrics import MetricsCollector, get_metrics_collector
from libs.line_match.base import KeywordSearchResult, LineMatcher, LineMatchError

from .semantic import SemanticSearcher, SemanticSearchError, SemanticSearchResult, SnippetFn

logger = structlog.get_logger("hybrid.fusion")

DEFAULT_KEYWORD_LIMIT = 20
DEFAULT_SEMANTIC_LIMIT = 10
DEFAULT_KEYWORD_WEIGHT = 0.6
DEFAULT_SEMANTIC_WEIGHT = 0.4


class ResultSource(str, Enum):
    """Which backend(s) produced a fused result."""
    KEYWORD = "keyword"
    SEMANTIC = "semantic"
    BOTH = "both"


@dataclass
class FusedResult:
    """A ranked code location after fusion."""
    path: str
    start_line: int
    end_line: int
    snippet: str
    score: float
    source: ResultSource
    match_line: Optional[int] = None
    match_column: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, omitting an empty snippet and unset cursor fields."""
        data: Dict[str, Any] = {
            "path": self.path,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "snippet": self.snippet,
            "score": self.score,
            "source": self.source.value,
            "match_line": self.match_line,
            "match_column": self.match_column,
        }
        if not self.snippet:
            del data["snippet"]
        for key in ("match_line", "match_column"):
            if data[key] is None:
                del data[key]
        return data


@dataclass
class HybridSearchResult:
    """Fused results plus per-backend counts taken before dedup and truncation."""
    results: List[FusedResult] = field(default_factory=list)
    keyword_count: int = 0
    semantic_count: int = 0
    semantic_enabled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "keyword_count": self.keyword_count,
            "semantic_count": self.semantic_count,
            "semantic_enabled": self.semantic_enabled,
        }


@dataclass
class HybridConfig:
    """Per-call hybrid search configuration.

    Any limit or weight at or below zero falls back to its default, so a
    zero-valued field means "unset". ``snippet_fn`` switches the semantic
    call to ``search_with_snippets``. ``semantic_timeout`` (seconds) bounds
    only the semantic call.
    """
    keyword_limit: int = DEFAULT_KEYWORD_LIMIT
    semantic_limit: int = DEFAULT_SEMANTIC_LIMIT
    keyword_weight: float = DEFAULT_KEYWORD_WEIGHT
    semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT
    snippet_fn: Optional[SnippetFn] = None
    semantic_timeout: Optional[float] = None

    def __post_init__(self):
        if self.keyword_limit <= 0:
            self.keyword_limit = DEFAULT_KEYWORD_LIMIT
        if self.semantic_limit <= 0:
            self.semantic_limit = DEFAULT_SEMANTIC_LIMIT
        if self.keyword_weight <= 0:
            self.keyword_weight = DEFAULT_KEYWORD_WEIGHT
        if self.semantic_weight <= 0:
            self.semantic_weight = DEFAULT_SEMANTIC_WEIGHT
        if self.semantic_timeout is not None and self.semantic_timeout <= 0:
            self.semantic_timeout = None

    @property
    def max_results(self) -> int:
        return self.keyword_limit + self.semantic_limit

    @classmethod
    def from_settings(
        cls,
        settings: SearchSettings,
        snippet_fn: Optional[SnippetFn] = None
    ) -> "HybridConfig":
        return cls(
            keyword_limit=settings.rs_keyword_limit,
            semantic_limit=settings.rs_semantic_limit,
            keyword_weight=settings.rs_keyword_weight,
            semantic_weight=settings.rs_semantic_weight,
            snippet_fn=snippet_fn,
            semantic_timeout=settings.rs_semantic_timeout,
        )


def result_key(path: str, start_line: int, end_line: int) -> str:
    """Identity key used for deduplication."""
    return f"{path}:{start_line}-{end_line}"


class HybridSearcher:
    """Combines keyword and semantic search into one ranked list.

    Parameters
    - line_matcher: Keyword backend, always queried
    - semantic: Optional semantic capability, queried when ``available()``
    - metrics: Collector to record into (process-wide one by default)
    """

    def __init__(
        self,
        line_matcher: LineMatcher,
        semantic: Optional[SemanticSearcher] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        self.line_matcher = line_matcher
        self.semantic = semantic
        self.metrics = metrics or get_metrics_collector()

    async def search(
        self,
        query: str,
        directory: str,
        config: Optional[HybridConfig] = None
    ) -> HybridSearchResult:
        """Perform a hybrid search over ``directory``.

        Raises
        - ``LineMatchError`` subclasses when the keyword backend fails
        - ``SemanticSearchError`` when the semantic call fails or times out

        Cancelling the awaiting task cancels the semantic call; the keyword
        backend always runs to completion in its worker thread.
        """
        # replace() re-runs normalization on caller-mutated configs
        config = dataclasses.replace(config) if config is not None else HybridConfig()
        start_time = time.perf_counter()

        try:
            result = await self._search(query, directory, config)
        except Exception as e:
            self.metrics.record_search("error", time.perf_counter() - start_time)
            logger.error("Hybrid search failed", query=query, error=str(e), error_type=type(e).__name__)
            raise

        duration = time.perf_counter() - start_time
        self.metrics.record_search("ok", duration)
        log_performance(
            "hybrid_search",
            duration * 1000,
            results_count=len(result.results),
            keyword_count=result.keyword_count,
            semantic_count=result.semantic_count,
            semantic_enabled=result.semantic_enabled,
        )
        return result

    async def _search(self, query: str, directory: str, config: HybridConfig) -> HybridSearchResult:
        fused: Dict[str, FusedResult] = {}

        keyword_result = await self._keyword_search(query, directory, config.keyword_limit)

        keyword_count = 0
        for match in keyword_result.results:
            keyword_count += 1

            key = result_key(match.path, match.line_start, match.line_end)
            existing = fused.get(key)
            if existing is not None:
                existing.source = ResultSource.BOTH
                existing.score += config.keyword_weight
            else:
                fused[key] = FusedResult(
                    path=match.path,
                    start_line=match.line_start,
                    end_line=match.line_end,
                    snippet=match.snippet,
                    score=config.keyword_weight,
                    source=ResultSource.KEYWORD,
                    match_line=match.line_start,
                )

        semantic_count = 0
        semantic_enabled = False

        if self.semantic is not None and self.semantic.available():
            semantic_result = await self._semantic_search(query, config)

            if semantic_result.available:
                semantic_enabled = True
                for candidate in semantic_result.results:
                    semantic_count += 1

                    weighted = config.semantic_weight * candidate.score
                    key = result_key(candidate.path, candidate.start_line, candidate.end_line)
                    existing = fused.get(key)
                    if existing is not None:
                        existing.source = ResultSource.BOTH
                        existing.score += weighted
                    else:
                        fused[key] = FusedResult(
                            path=candidate.path,
                            start_line=candidate.start_line,
                            end_line=candidate.end_line,
                            snippet=candidate.snippet,
                            score=weighted,
                            source=ResultSource.SEMANTIC,
                        )
                self.metrics.record_backend_matches("semantic", semantic_count)
            else:
                logger.info("Semantic search unavailable, using keyword results only", reason=semantic_result.error)

        # Ties fall back to path, then start line, for reproducible output
        results = sorted(fused.values(), key=lambda r: (-r.score, r.path, r.start_line))

        return HybridSearchResult(
            results=results[:config.max_results],
            keyword_count=keyword_count,
            semantic_count=semantic_count,
            semantic_enabled=semantic_enabled,
        )

    async def _keyword_search(self, query: str, directory: str, limit: int) -> KeywordSearchResult:
        try:
            result = await asyncio.to_thread(self.line_matcher.search, query, directory, limit)
        except LineMatchError as e:
            self.metrics.record_backend_error("keyword", type(e).__name__)
            raise

        self.metrics.record_backend_matches("keyword", len(result.results))
        return result

    async def _semantic_search(self, query: str, config: HybridConfig) -> SemanticSearchResult:
        if config.snippet_fn is not None:
            call = self.semantic.search_with_snippets(query, config.semantic_limit, config.snippet_fn)
        else:
            call = self.semantic.search_with_context(query, config.semantic_limit)

        if config.semantic_timeout is None:
            return await self._await_semantic(call)

        # Capability errors are already wrapped, so a TimeoutError here is the deadline
        try:
            return await asyncio.wait_for(self._await_semantic(call), timeout=config.semantic_timeout)
        except asyncio.TimeoutError as e:
            self.metrics.record_backend_error("semantic", "TimeoutError")
            raise SemanticSearchError(
                f"semantic search timed out after {config.semantic_timeout}s"
            ) from e

    async def _await_semantic(self, call: Awaitable[SemanticSearchResult]) -> SemanticSearchResult:
        try:
            return await call
        except SemanticSearchError:
            self.metrics.record_backend_error("semantic", "SemanticSearchError")
            raise
        except Exception as e:
            self.metrics.record_backend_error("semantic", type(e).__name__)
            raise SemanticSearchError(f"semantic search failed: {e}") from e
