"""Pytest configuration and shared fixtures for gitlab-client-core tests."""

import os

import pytest

from gitlab_client_core.client import GitLabClient
from gitlab_client_core.testing import MockGitLab, mock_config


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Auto-cleanup: Clear GitLab-related environment variables before each test.

    This prevents test pollution when testing credential resolution.
    """
    prefixes = ("GITLAB_", "CI_JOB_TOKEN", "TEST_")

    for key in list(os.environ.keys()):
        if key.startswith(prefixes):
            monkeypatch.delenv(key, raising=False)

    yield


@pytest.fixture
def config():
    return mock_config()


@pytest.fixture
def server():
    """In-memory GitLab answering under https://gitlab.example.com/api/v4."""
    return MockGitLab()


@pytest.fixture
async def gitlab(server, config):
    async with GitLabClient(config, transport=server.transport) as client:
        yield client
