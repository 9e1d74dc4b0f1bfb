"""
Tests for AppConfig (api/config.py).

Verifies defaults, PERFGRAPH_* environment parsing, CLI-style overrides and
that the configured log level is applied on every app build.
"""

import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from api.config import DEFAULT_PORT, AppConfig
from api.shared.logger import resolve_level, setup_logging


class TestDefaults:

    def test_defaults(self):
        config = AppConfig()

        assert config.port == DEFAULT_PORT == 3001
        assert config.base_url == "http://localhost:3001"
        assert config.data_url == "http://localhost:3001/api/performance-data"
        assert config.cors_origins == ["*"]
        assert config.source_path.name == "performance.json"
        assert config.request_timeout is None
        assert config.keep_document_on_error is True

    def test_base_url_trailing_slash_is_stripped(self):
        config = AppConfig(base_url="http://example.test:8080/")
        assert config.data_url == "http://example.test:8080/api/performance-data"

    def test_to_dict_is_serializable(self, tmp_path):
        data = AppConfig(source_path=tmp_path / "perf.json").to_dict()
        assert data["source_path"] == str(tmp_path / "perf.json")
        assert isinstance(data["dist_path"], str)


class TestFromEnv:

    def test_empty_environment(self):
        assert AppConfig.from_env({}).port == DEFAULT_PORT

    def test_all_variables(self, tmp_path):
        config = AppConfig.from_env({
            "PERFGRAPH_SOURCE": str(tmp_path / "runs.json"),
            "PERFGRAPH_HOST": "0.0.0.0",
            "PERFGRAPH_PORT": "8123",
            "PERFGRAPH_CORS_ORIGINS": "http://a.test, http://b.test,",
            "PERFGRAPH_DIST": str(tmp_path / "dist"),
            "PERFGRAPH_LOG_LEVEL": "debug",
            "PERFGRAPH_REQUEST_TIMEOUT": "2.5",
            "PERFGRAPH_TIMEZONE": "UTC",
            "PERFGRAPH_KEEP_ON_ERROR": "false",
        })

        assert config.source_path == tmp_path / "runs.json"
        assert config.host == "0.0.0.0"
        assert config.port == 8123
        assert config.base_url == "http://localhost:8123"
        assert config.cors_origins == ["http://a.test", "http://b.test"]
        assert config.dist_path == tmp_path / "dist"
        assert config.log_level == "debug"
        assert config.request_timeout == 2.5
        assert config.display_timezone == "UTC"
        assert config.keep_document_on_error is False

    def test_explicit_base_url(self):
        config = AppConfig.from_env({"PERFGRAPH_PORT": "9000", "PERFGRAPH_BASE_URL": "http://api.test"})
        assert config.base_url == "http://api.test"


class TestOverrides:

    def test_port_override_moves_derived_base_url(self):
        config = AppConfig().with_overrides(port=4000, host=None)
        assert config.port == 4000
        assert config.host == "127.0.0.1"
        assert config.base_url == "http://localhost:4000"

    def test_port_override_keeps_explicit_base_url(self):
        config = AppConfig(base_url="http://api.test").with_overrides(port=4000)
        assert config.base_url == "http://api.test"

    def test_source_override(self, tmp_path):
        config = AppConfig().with_overrides(source_path=tmp_path / "x.json")
        assert config.source_path == tmp_path / "x.json"


class TestLogLevel:
    """The configured log level is applied by every app built from a config."""

    @pytest.fixture(autouse=True)
    def restore_root_level(self):
        root = logging.getLogger()
        level = root.level
        yield
        root.setLevel(level)

    def test_later_calls_change_the_level(self):
        setup_logging("INFO")
        assert logging.getLogger().level == logging.INFO

        assert setup_logging("debug") == logging.DEBUG
        assert logging.getLogger().level == logging.DEBUG

    def test_each_app_uses_its_config_level(self, tmp_path):
        from main import create_app

        create_app(AppConfig(source_path=tmp_path / "a.json", log_level="WARNING"))
        assert logging.getLogger().level == logging.WARNING

        create_app(AppConfig(source_path=tmp_path / "b.json", log_level="DEBUG"))
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        assert resolve_level("chatty") == logging.INFO
        assert resolve_level(logging.ERROR) == logging.ERROR
