"""Shared fixtures and fakes for repo search tests."""

import asyncio
import json
import os
import sys
from typing import List, Optional

import pytest
from prometheus_client import CollectorRegistry

from libs.common.metrics import MetricsCollector
from libs.hybrid.semantic import SemanticResult, SemanticSearcher, SemanticSearchResult
from libs.line_match.base import KeywordSearchResult, LineMatcher, Match

FAKE_RG_TEMPLATE = """#!{python}
import json
import sys

with open({argv_file!r}, "w") as f:
    json.dump(sys.argv[1:], f)

sys.stderr.buffer.write({stderr!r})
sys.stderr.flush()
sys.stdout.buffer.write({stdout!r})
sys.stdout.flush()
sys.exit({exit_code})
"""


def rg_match(path: str, line_number: int, text: str) -> str:
    """One ``rg --json`` match record."""
    return json.dumps({
        "type": "match",
        "data": {
            "path": {"text": path},
            "lines": {"text": text + "\n"},
            "line_number": line_number,
            "absolute_offset": 0,
            "submatches": [],
        },
    })


def rg_begin(path: str) -> str:
    return json.dumps({"type": "begin", "data": {"path": {"text": path}}})


class FakeRipgrep:
    """Writes an executable stand-in for ``rg`` with canned output."""

    def __init__(self, directory):
        self.directory = directory
        self.path = directory / "rg"
        self.argv_file = directory / "argv.json"

    def program(self, stdout="", stderr="", exit_code: int = 0) -> str:
        if isinstance(stdout, str):
            stdout = stdout.encode("utf-8")
        if isinstance(stderr, str):
            stderr = stderr.encode("utf-8")
        self.path.write_text(FAKE_RG_TEMPLATE.format(
            python=sys.executable,
            argv_file=str(self.argv_file),
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
        ))
        os.chmod(self.path, 0o755)
        return str(self.path)

    @property
    def argv(self) -> List[str]:
        return json.loads(self.argv_file.read_text())


class StaticLineMatcher(LineMatcher):
    """In-memory line matcher returning canned matches (ignores ``limit``)."""

    def __init__(self, matches: Optional[List[Match]] = None, error: Optional[Exception] = None):
        self.matches = matches or []
        self.error = error
        self.calls = []

    def search(self, query, root, limit=20):
        self.calls.append((query, root, limit))
        if self.error is not None:
            raise self.error
        return KeywordSearchResult(results=[
            Match(m.path, m.line_start, m.line_end, m.snippet, m.score) for m in self.matches
        ])


class FakeSemanticSearcher(SemanticSearcher):
    """In-memory semantic capability (ignores ``limit``)."""

    def __init__(
        self,
        results: Optional[List[SemanticResult]] = None,
        is_available: bool = True,
        result_available: bool = True,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.results = results or []
        self.is_available = is_available
        self.result_available = result_available
        self.error = error
        self.delay = delay
        self.calls = []

    def available(self):
        return self.is_available

    async def _respond(self, snippet_fn=None):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if not self.result_available:
            return SemanticSearchResult(available=False, error="Embedding provider not available")
        results = []
        for r in self.results:
            snippet = snippet_fn(r.path, r.start_line, r.end_line) if snippet_fn else r.snippet
            results.append(SemanticResult(r.path, r.start_line, r.end_line, snippet, r.score))
        return SemanticSearchResult(available=True, results=results)

    async def search_with_context(self, query, limit):
        self.calls.append(("search_with_context", query, limit))
        return await self._respond()

    async def search_with_snippets(self, query, limit, snippet_fn):
        self.calls.append(("search_with_snippets", query, limit))
        return await self._respond(snippet_fn)


@pytest.fixture
def fake_rg(tmp_path):
    """Factory for a fake ripgrep executable."""
    return FakeRipgrep(tmp_path)


@pytest.fixture
def metrics():
    """Metrics collector with an isolated registry."""
    return MetricsCollector("test-service", registry=CollectorRegistry())
