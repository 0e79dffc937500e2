"""Hybrid keyword + semantic search.

Primary components:
- ``fusion``: ``HybridSearcher``, its per-call ``HybridConfig`` and result types.
- ``semantic``: the abstract semantic capability the engine consumes.
- ``snippets``: a file-backed snippet function for semantic candidates.
"""

from .fusion import (
    FusedResult,
    HybridConfig,
    HybridSearcher,
    HybridSearchResult,
    ResultSource,
    result_key,
)
from .semantic import SemanticResult, SemanticSearcher, SemanticSearchError, SemanticSearchResult
from .snippets import file_snippet_fn, file_snippet_fn_from_settings

__all__ = [
    "FusedResult",
    "HybridConfig",
    "HybridSearcher",
    "HybridSearchResult",
    "ResultSource",
    "SemanticResult",
    "SemanticSearcher",
    "SemanticSearchError",
    "SemanticSearchResult",
    "file_snippet_fn",
    "file_snippet_fn_from_settings",
    "result_key",
]
