"""Line matcher factory.

Centralizes creation of concrete ``LineMatcher`` strategies so callers don't
depend on how the external tool is driven.
"""

from enum import Enum
from typing import Any, Dict

import structlog

from libs.common.config import SearchSettings

from .base import LineMatcher
from .ripgrep import RipgrepJSONMatcher, RipgrepTextMatcher

logger = structlog.get_logger("line_match.factory")


class LineMatcherType(Enum):
    """Supported ripgrep output modes."""
    JSON = "json"
    TEXT = "text"


class LineMatcherFactory:
    """Factory for creating line matcher instances."""

    @staticmethod
    def create(matcher_type: LineMatcherType, config: Dict[str, Any]) -> LineMatcher:
        """Create a line matcher.

        Parameters
        - matcher_type: A ``LineMatcherType`` enum value
        - config: Optional ``executable`` override (defaults to ``rg``)
        """
        executable = config.get("executable") or "rg"

        if matcher_type == LineMatcherType.JSON:
            return RipgrepJSONMatcher(executable=executable)

        elif matcher_type == LineMatcherType.TEXT:
            return RipgrepTextMatcher(executable=executable)

        else:
            raise ValueError(f"Unsupported line matcher type: {matcher_type}")


def create_line_matcher(matcher_type: str = "json", **config: Any) -> LineMatcher:
    """Convenience function to create a line matcher from a type string."""
    try:
        matcher_type_enum = LineMatcherType(matcher_type.lower())
    except ValueError:
        raise ValueError(f"Unsupported line matcher type: {matcher_type}")
    return LineMatcherFactory.create(matcher_type_enum, config)


def create_line_matcher_from_settings(settings: SearchSettings) -> LineMatcher:
    """Create the line matcher selected by ``RS_KEYWORD_OUTPUT``."""
    matcher = create_line_matcher(
        settings.rs_keyword_output,
        executable=settings.rs_ripgrep_path,
    )
    logger.debug(
        "Line matcher created",
        matcher=type(matcher).__name__,
        executable=settings.rs_ripgrep_path,
    )
    return matcher
