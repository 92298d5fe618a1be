"""GitLab Client Core - request pipeline and pagination for the GitLab REST API.

This library provides the machinery a typed GitLab API client is built on:
- Credential stamping for private, personal access, OAuth2 and job tokens
- A request builder with canonical query encoding
- A retrying, rate-limit aware httpx transport stack
- Response decoding into typed models, with optional (404 → absent) reads
- Restartable pagers and one-shot item streams over paginated collections

Example:
    ```python
    from gitlab_client_core.auth import Credential, CredentialKind
    from gitlab_client_core.client import GitLabClient
    from gitlab_client_core.config import ClientConfig

    config = ClientConfig(
        base_url="https://gitlab.example.com",
        credential=Credential(CredentialKind.PRIVATE_TOKEN, "glpat-..."),
    )

    async with GitLabClient(config) as gitlab:
        project = await gitlab.projects.get_project("my-group", "my-project")
        async for variable in gitlab.projects.get_variables_stream(project):
            print(variable.key)
    ```
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
