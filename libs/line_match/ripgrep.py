"""ripgrep-backed line matchers.

Two strategies share the same exit-code policy and ranking:

- ``RipgrepJSONMatcher`` streams ``rg --json`` records and is the default.
- ``RipgrepTextMatcher`` parses ``path:line:content`` output for builds or
  environments where the JSON printer is unavailable.

ripgrep exits with 0 when something matched, 1 when nothing matched and 2
on errors (bad regex, bad flags). Any other status, or a signal, is treated
as a generic failure.
"""

import base64
import json
import subprocess
import threading
from typing import IO, Any, List, Optional

import structlog

from .base import (
    DEFAULT_LIMIT,
    INVALID_QUERY_MESSAGE,
    MAX_SCORE,
    BackendFailureError,
    InvalidQueryError,
    KeywordSearchResult,
    LineMatcher,
    Match,
    has_root,
    normalize_limit,
    relativize,
)

logger = structlog.get_logger("line_match.ripgrep")

EXIT_NO_MATCHES = 1
EXIT_INVALID = 2


class _RipgrepMatcher(LineMatcher):
    """Shared argv construction for the ripgrep strategies."""

    def __init__(self, executable: str = "rg"):
        self.executable = executable

    def _command(self, flags: List[str], query: str, root: str) -> List[str]:
        args = [self.executable, *flags, query]
        if has_root(root):
            args.append(root)
        return args

    def _launch_failure(self, err: OSError) -> BackendFailureError:
        logger.error("Failed to start ripgrep", executable=self.executable, error=str(err))
        return BackendFailureError(f"starting ripgrep: {err}")


class RipgrepJSONMatcher(_RipgrepMatcher):
    """Line matcher driving ``rg --json``.

    stdout is consumed on the calling thread while stderr is drained on a
    helper thread, so ripgrep can never stall on a full pipe. Once ``limit``
    matches are collected the remaining stdout is read and discarded.
    """

    def search(self, query: str, root: str, limit: int = DEFAULT_LIMIT) -> KeywordSearchResult:
        limit = normalize_limit(limit)
        args = self._command(
            ["--json", "--max-count", str(limit * 2), "--no-messages"],
            query,
            root,
        )

        try:
            proc = subprocess.Popen(args, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except OSError as e:
            raise self._launch_failure(e) from e

        stderr_lines: List[str] = []
        stderr_reader = threading.Thread(
            target=_drain_lines,
            args=(proc.stderr, stderr_lines),
            name="rg-stderr",
            daemon=True,
        )
        stderr_reader.start()

        matches: List[Match] = []
        score = MAX_SCORE
        with proc.stdout:
            for raw in proc.stdout:
                if len(matches) >= limit:
                    continue
                match = parse_json_record(raw, root)
                if match is None:
                    continue
                match.score = score
                matches.append(match)
                score -= 1

        # stderr must be fully drained before blocking on exit
        stderr_reader.join()
        returncode = proc.wait()

        return self._classify_exit(returncode, matches, stderr_lines)

    def _classify_exit(
        self,
        returncode: int,
        matches: List[Match],
        stderr_lines: List[str],
    ) -> KeywordSearchResult:
        if returncode == 0:
            return KeywordSearchResult(results=matches)

        if returncode == EXIT_NO_MATCHES:
            return KeywordSearchResult(results=[])

        stderr_text = "; ".join(stderr_lines)

        if returncode == EXIT_INVALID:
            logger.info("ripgrep rejected query", stderr=stderr_text)
            raise InvalidQueryError(stderr_text or INVALID_QUERY_MESSAGE)

        if matches:
            logger.warning(
                "ripgrep failed after producing matches, keeping partial results",
                exit_code=returncode,
                matches=len(matches),
                stderr=stderr_text,
            )
            return KeywordSearchResult(results=matches)

        logger.error("ripgrep failed", exit_code=returncode, stderr=stderr_text)
        if stderr_text:
            raise BackendFailureError(f"ripgrep exited with code {returncode} ({stderr_text})")
        raise BackendFailureError(f"ripgrep exited with code {returncode}")


class RipgrepTextMatcher(_RipgrepMatcher):
    """Line matcher parsing ``rg --line-number --no-heading`` output."""

    def search(self, query: str, root: str, limit: int = DEFAULT_LIMIT) -> KeywordSearchResult:
        limit = normalize_limit(limit)
        args = self._command(
            ["--line-number", "--no-heading", "--color", "never", "--max-count", str(limit * 2)],
            query,
            root,
        )

        try:
            completed = subprocess.run(args, capture_output=True)
        except OSError as e:
            raise self._launch_failure(e) from e

        stderr_text = completed.stderr.decode("utf-8", errors="replace").strip()
        returncode = completed.returncode

        if returncode == EXIT_NO_MATCHES:
            return KeywordSearchResult(results=[])

        if returncode == EXIT_INVALID:
            logger.info("ripgrep rejected query", stderr=stderr_text)
            raise InvalidQueryError(stderr_text or INVALID_QUERY_MESSAGE)

        if returncode != 0:
            logger.error("ripgrep failed", exit_code=returncode, stderr=stderr_text)
            if stderr_text:
                raise BackendFailureError(f"ripgrep exited with code {returncode} ({stderr_text})")
            raise BackendFailureError(f"ripgrep exited with code {returncode}")

        output = completed.stdout.decode("utf-8", errors="replace")
        return parse_text_output(output, root, limit)


def parse_json_record(line: Any, root: str) -> Optional[Match]:
    """Parse one ``rg --json`` line, returning ``None`` for anything but a match.

    ``line`` may be ``bytes`` or ``str``.
    """
    try:
        record = json.loads(line)
    except ValueError:
        logger.debug("Skipping undecodable ripgrep record")
        return None

    if not isinstance(record, dict) or record.get("type") != "match":
        return None

    data = record.get("data")
    if not isinstance(data, dict):
        return None

    path = _arbitrary_data(data.get("path"))
    line_number = data.get("line_number")
    if path is None or isinstance(line_number, bool) or not isinstance(line_number, int):
        return None

    text = _arbitrary_data(data.get("lines")) or ""

    return Match(
        path=relativize(path, root),
        line_start=line_number,
        line_end=line_number,
        snippet=text.rstrip("\r\n"),
    )


def _arbitrary_data(value: Any) -> Optional[str]:
    """Decode ripgrep's ``{"text": ...}`` / ``{"bytes": <base64>}`` union."""
    if not isinstance(value, dict):
        return None
    text = value.get("text")
    if isinstance(text, str):
        return text
    encoded = value.get("bytes")
    if isinstance(encoded, str):
        try:
            return base64.b64decode(encoded).decode("utf-8", errors="replace")
        except ValueError:
            return None
    return None


def parse_text_output(output: str, root: str, limit: int) -> KeywordSearchResult:
    """Parse ``path:line:content`` lines into ranked matches."""
    matches: List[Match] = []
    score = MAX_SCORE

    for line in output.split("\n"):
        if len(matches) >= limit:
            break
        if not line:
            continue

        match = parse_text_line(line, root)
        if match is None:
            continue
        match.score = score
        matches.append(match)
        score -= 1

    return KeywordSearchResult(results=matches)


def parse_text_line(line: str, root: str) -> Optional[Match]:
    """Parse ``path:line:content``; content keeps any further colons."""
    parts = line.split(":", 2)
    if len(parts) != 3:
        return None

    path, line_number, content = parts
    # int() would also accept padding, underscores and non-ASCII digits
    if not (line_number.isascii() and line_number.isdigit()):
        return None
    number = int(line_number)

    return Match(
        path=relativize(path, root),
        line_start=number,
        line_end=number,
        snippet=content.rstrip("\r\n"),
    )


def _drain_lines(stream: IO[bytes], sink: List[str]) -> None:
    with stream:
        for raw in stream:
            text = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            if text:
                sink.append(text)
