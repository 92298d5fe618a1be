"""Testing utilities for code built on the GitLab client.

Modules:
    factories: Mock responses, paginated collections and an in-memory server

Example:
    ```python
    from gitlab_client_core.client import GitLabClient
    from gitlab_client_core.testing import MockGitLab, mock_config


    async def test_get_project():
        server = MockGitLab()
        server.add("GET", "/projects/42", json_data={"id": 42, "name": "demo"})
        async with GitLabClient(mock_config(), transport=server.transport) as gitlab:
            project = await gitlab.projects.get_project(42)
        assert project.name == "demo"
    ```
"""

from gitlab_client_core.testing.factories import (
    DEFAULT_BASE_URL,
    DEFAULT_TOKEN,
    MockGitLab,
    Route,
    create_error_response,
    create_mock_response,
    mock_config,
    paginated_response,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_TOKEN",
    "MockGitLab",
    "Route",
    "create_error_response",
    "create_mock_response",
    "mock_config",
    "paginated_response",
]
