"""
Root conftest.py for performance graph viewer tests.

This file contains shared fixtures and pytest configuration
that applies to all test modules.
"""

import json
import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from api.config import AppConfig  # noqa: E402


# ============================================================================
# Pytest Hooks
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "http: mark test as going through the FastAPI app",
    )


def pytest_collection_modifyitems(config, items):
    """Mark tests that use the HTTP client fixture."""
    for item in items:
        if "client" in getattr(item, "fixturenames", ()):
            item.add_marker(pytest.mark.http)


# ============================================================================
# Shared Fixtures
# ============================================================================


def make_run(timestamp, deal_id, total, success=True, **components):
    """Build one run record; unspecified components default to 0.0."""
    times = {
        "slack_mcp": 0.0,
        "gmail_mcp": 0.0,
        "gmail_api": 0.0,
        "personality": 0.0,
        "einstein": 0.0,
    }
    times.update(components)
    times["total"] = total
    return {
        "timestamp": timestamp,
        "deal_id": deal_id,
        "component_times": times,
        "success": success,
    }


@pytest.fixture
def single_run_document():
    """The one-run document used throughout the docs."""
    return {
        "runs": [
            {
                "timestamp": "2024-01-01T10:00:00Z",
                "deal_id": "d1",
                "component_times": {
                    "slack_mcp": 1.5,
                    "gmail_mcp": 2.0,
                    "gmail_api": 0.5,
                    "personality": 0.2,
                    "einstein": 0.1,
                    "total": 4.3,
                },
                "success": True,
            }
        ]
    }


@pytest.fixture
def three_run_document():
    """Three runs, deliberately not in timestamp order."""
    return {
        "runs": [
            make_run("2024-03-05T14:30:00Z", "deal-a", 6.0, slack_mcp=2.0, gmail_mcp=1.0, einstein=3.0),
            make_run("2024-03-05T09:15:00Z", "deal-b", 3.0, success=False, slack_mcp=1.0, gmail_mcp=2.0),
            make_run("2024-03-05T18:45:30Z", "deal-c", 9.0, slack_mcp=3.0, gmail_api=4.5, personality=1.5),
        ]
    }


@pytest.fixture
def config(tmp_path):
    """Config pointing at a temporary source file, formatted in UTC."""
    return AppConfig(
        source_path=tmp_path / "performance.json",
        dist_path=tmp_path / "dist",
        display_timezone="UTC",
        base_url="http://provider.test",
    )


@pytest.fixture
def write_source(config):
    """Write a document (dict) or raw text to the configured source file."""

    def _write(document):
        content = document if isinstance(document, str) else json.dumps(document)
        config.source_path.write_text(content, encoding="utf-8")
        return config.source_path

    return _write


@pytest.fixture
def client(config):
    """FastAPI TestClient bound to the temporary config."""
    from fastapi.testclient import TestClient
    from main import create_app

    with TestClient(create_app(config)) as c:
        yield c
