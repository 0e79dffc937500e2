"""Tests for common utilities."""

import structlog
from prometheus_client import CollectorRegistry

from libs.common.config import BaseConfig, SearchSettings, get_settings
from libs.common.logging import configure_logging, configure_logging_from_settings, log_performance
from libs.common.metrics import MetricsCollector, get_metrics_collector


def test_config_loading():
    """Test configuration defaults."""
    config = BaseConfig()
    assert config.rs_env == "local"
    assert config.rs_log_level == "INFO"
    assert config.rs_log_format == "json"


def test_search_settings_defaults():
    settings = get_settings()
    assert isinstance(settings, SearchSettings)
    assert settings.rs_ripgrep_path == "rg"
    assert settings.rs_keyword_output == "json"
    assert settings.rs_keyword_limit == 20
    assert settings.rs_semantic_limit == 10
    assert settings.rs_keyword_weight == 0.6
    assert settings.rs_semantic_weight == 0.4
    assert settings.rs_semantic_timeout == 0.0
    assert settings.rs_snippet_max_chars == 500


def test_search_settings_from_environment(monkeypatch):
    monkeypatch.setenv("RS_KEYWORD_OUTPUT", "text")
    monkeypatch.setenv("rs_semantic_limit", "3")
    settings = SearchSettings()
    assert settings.rs_keyword_output == "text"
    assert settings.rs_semantic_limit == 3


def test_settings_read_dotenv(tmp_path, monkeypatch):
    """A ``.env`` file in the working directory feeds the settings."""
    (tmp_path / ".env").write_text("RS_ENV=prod\nRS_RIPGREP_PATH=/opt/rg\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("RS_ENV", raising=False)
    monkeypatch.delenv("RS_RIPGREP_PATH", raising=False)

    settings = get_settings()

    assert settings.rs_env == "prod"
    assert settings.rs_ripgrep_path == "/opt/rg"


def test_logging_configuration():
    """Configuring logging should not raise."""
    configure_logging("test-service", "INFO", "json")
    configure_logging("test-service", "debug", "console")
    log_performance("unit_test", 1.5, results_count=0)


def test_logging_binds_service_context():
    configure_logging_from_settings(SearchSettings(), service_name="repo-search-test")
    context = structlog.contextvars.get_contextvars()
    assert context["service"] == "repo-search-test"
    assert context["env"] == "local"


def test_metrics_collector():
    """Test metrics recording and exposition."""
    collector = MetricsCollector("test-service", registry=CollectorRegistry())
    assert collector.service_name == "test-service"

    collector.record_search("ok", 0.1)
    collector.record_backend_matches("keyword", 7)
    collector.record_backend_error("semantic", "TimeoutError")

    metrics = collector.get_metrics()
    assert isinstance(metrics, str)
    assert 'rs_search_requests_total{status="ok"} 1.0' in metrics
    assert 'rs_backend_matches_total{backend="keyword"} 7.0' in metrics
    assert 'rs_backend_errors_total{backend="semantic",error="TimeoutError"} 1.0' in metrics


def test_metrics_collector_singleton():
    assert get_metrics_collector() is get_metrics_collector("ignored")
