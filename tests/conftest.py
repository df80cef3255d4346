"""
Shared test fixtures and configuration for the analytical storage test suite.

This file contains pytest fixtures that can be used across all test modules.
Fixtures defined here are automatically available to all test files.
"""

import io
import os
from unittest.mock import Mock, patch

import pytest
from dotenv import load_dotenv

# Load test environment variables (if any)
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))


@pytest.fixture
def mock_logger():
    """Provide a mock logger so tests can assert on log calls."""
    return Mock()


@pytest.fixture
def no_sleep():
    """Patch out the retry delay and expose the mock to count sleeps."""
    with patch("scripts.cosmos.retry.time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture
def render_streams():
    """Provide in-memory stdout/stderr streams for the Reporter."""
    return io.StringIO(), io.StringIO()


@pytest.fixture
def reporter(render_streams):
    """Create a Reporter writing to in-memory streams without colors."""
    from scripts.cosmos.reporter import RenderConfig, Reporter

    stdout, stderr = render_streams
    return Reporter(RenderConfig(stdout=stdout, stderr=stderr, color=False))


@pytest.fixture
def sample_databases():
    """Two databases as returned by `az cosmosdb sql database list`."""
    return [
        {"id": "/subscriptions/sub/.../sqlDatabases/alpha", "name": "alpha"},
        {"id": "/subscriptions/sub/.../sqlDatabases/beta", "name": "beta"},
    ]


@pytest.fixture
def sample_containers():
    """
    Containers per database.

    alpha has one enabled container (TTL 30) and one disabled container (TTL 0);
    beta has one enabled container (TTL 90) reported only at the nested location.
    """
    return {
        "alpha": [
            {"name": "orders", "resource": {"id": "orders", "analyticalStorageTtl": 30}},
            {"name": "audit", "resource": {"id": "audit", "analyticalStorageTtl": 0}},
        ],
        "beta": [
            {"name": "events", "resource": {"id": "events", "analyticalStorageTtl": 90}},
        ],
    }


@pytest.fixture
def fake_client(sample_databases, sample_containers):
    """
    Provide a mock CosmosManagementClient backed by the sample payloads.

    Every call succeeds by default; tests override side effects as needed.
    """
    client = Mock()
    client.ensure_logged_in.return_value = None
    client.list_databases.return_value = sample_databases
    client.show_database.side_effect = lambda name: next(
        db for db in sample_databases if db["name"] == name
    )
    client.list_containers.side_effect = lambda name: sample_containers[name]
    client.disable_analytical_storage.return_value = None
    return client


@pytest.fixture
def manager(fake_client, reporter, mock_logger):
    """Create an AnalyticalStorageManager with a short retry budget."""
    from scripts.cosmos.analytical_storage_manager import AnalyticalStorageManager

    return AnalyticalStorageManager(
        fake_client,
        reporter=reporter,
        max_retries=3,
        retry_delay=0,
        logger=mock_logger,
    )
