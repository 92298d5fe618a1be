"""Tests for building the transport stack from a config."""

import httpx
import pytest

from gitlab_client_core.config import RetryConfig
from gitlab_client_core.testing import mock_config
from gitlab_client_core.transport import GitLabRetry, create_base_transport, create_transport_stack


@pytest.mark.unit
def test_stack_wraps_given_transport_in_retry():
    inner = httpx.MockTransport(lambda request: httpx.Response(200))
    config = mock_config(retry=RetryConfig(max_attempts=2, backoff=0.5, jitter=0.1))

    stack = create_transport_stack(config, inner)

    assert isinstance(stack, GitLabRetry)
    assert stack._wrapped_transport is inner
    assert stack.max_retries == 2
    assert stack.backoff_factor == 0.5
    assert stack.jitter == 0.1


@pytest.mark.unit
def test_retries_disabled_returns_inner_transport():
    inner = httpx.MockTransport(lambda request: httpx.Response(200))
    config = mock_config(retry=RetryConfig(max_attempts=0))

    assert create_transport_stack(config, inner) is inner


@pytest.mark.unit
def test_default_inner_transport_is_pooled_http():
    stack = create_transport_stack(mock_config())

    assert isinstance(stack, GitLabRetry)
    assert isinstance(stack._wrapped_transport, httpx.AsyncHTTPTransport)


@pytest.mark.unit
def test_base_transport_accepts_proxy_and_tls_settings():
    config = mock_config(tls_verify=False, proxy="http://proxy.internal:3128")

    assert isinstance(create_base_transport(config), httpx.AsyncHTTPTransport)
