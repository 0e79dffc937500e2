"""Common utilities shared across repo search packages.

Includes:
- ``config``: Pydantic-based settings from ``RS_*`` environment variables.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus metrics helpers.

Import pattern:
- from libs.common.config import get_settings
- from libs.common.logging import configure_logging
"""
