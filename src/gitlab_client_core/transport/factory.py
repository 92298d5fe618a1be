"""Factory for the transport stack a GitLab client sends through."""

import logging

import httpx

from gitlab_client_core.config import ClientConfig
from gitlab_client_core.transport.retry import GitLabRetry

logger = logging.getLogger(__name__)


def create_base_transport(config: ClientConfig) -> httpx.AsyncHTTPTransport:
    """Pooled HTTP transport honouring TLS verification and proxy settings."""
    return httpx.AsyncHTTPTransport(
        verify=config.tls_verify,
        proxy=config.proxy,
        retries=0,
    )


def create_transport_stack(
    config: ClientConfig,
    wrapped_transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncBaseTransport:
    """Build the transport stack described by ``config``.

    Args:
        config: Client configuration
        wrapped_transport: Innermost transport; defaults to a pooled
            ``httpx.AsyncHTTPTransport``. Tests pass an ``httpx.MockTransport``.

    Returns:
        The base transport, wrapped in ``GitLabRetry`` unless retries are disabled
    """
    transport = wrapped_transport if wrapped_transport is not None else create_base_transport(config)

    if config.retry.max_attempts == 0:
        logger.debug("Retries disabled")
        return transport

    return GitLabRetry(
        wrapped_transport=transport,
        max_retries=config.retry.max_attempts,
        backoff_factor=config.retry.backoff,
        jitter=config.retry.jitter,
    )
