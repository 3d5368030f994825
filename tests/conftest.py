"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from seeder.lib.writer import BatchWriter  # noqa: E402
from tests.helpers import FakeBackend  # noqa: E402


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)


@pytest.fixture
def sleeps():
    """Recorded backoff delays; passed to BatchWriter instead of time.sleep."""
    return []


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def writer_for(sleeps):
    """Build a BatchWriter around a backend without real sleeping."""

    def _build(backend):
        return BatchWriter(backend, sleep=sleeps.append)

    return _build
