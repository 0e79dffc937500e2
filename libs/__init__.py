"""Shared libraries for repo search.

Subpackages:
- ``libs.common``: configuration, logging and metrics.
- ``libs.line_match``: keyword search through an external line matcher.
- ``libs.hybrid``: fusion of keyword and semantic results.
"""
