"""Transport layer components for composable HTTP middleware.

Transport layers wrap httpx's async transports. The stack a client uses is a
pooled ``httpx.AsyncHTTPTransport`` (timeouts, TLS, proxy) wrapped by
``GitLabRetry`` (idempotent retries, 429 handling).

Modules:
    retry: Retry logic with Retry-After and RateLimit-Reset support
    factory: Builds the stack from a ``ClientConfig``

Example:
    ```python
    from gitlab_client_core.transport import create_transport_stack

    transport = create_transport_stack(config)
    ```
"""

from gitlab_client_core.transport.factory import create_base_transport, create_transport_stack
from gitlab_client_core.transport.retry import GitLabRetry

__all__ = ["GitLabRetry", "create_base_transport", "create_transport_stack"]
