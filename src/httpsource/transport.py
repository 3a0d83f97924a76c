"""HTTP client construction."""

from __future__ import annotations

import httpx

from httpsource.auth.authenticator import Authenticator
from httpsource.config import ClientConfig


def build_http_client(
    config: ClientConfig,
    authenticator: Authenticator,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Create the shared, connection-pooled client used by every poll.

    ``transport`` replaces the network transport (tests pass an
    ``httpx.MockTransport``).
    """
    timeout = httpx.Timeout(config.read_timeout, connect=config.connect_timeout)
    kwargs = {}
    if transport is not None:
        kwargs["transport"] = transport
    elif config.proxy:
        kwargs["proxy"] = config.proxy
    return httpx.Client(
        auth=authenticator.httpx_auth(),
        timeout=timeout,
        verify=config.verify_ssl,
        follow_redirects=config.follow_redirects,
        headers={"User-Agent": config.user_agent},
        **kwargs,
    )
