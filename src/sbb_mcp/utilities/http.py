"""Utilities for creating standardized httpx AsyncClient instances."""

from typing import Any, Protocol

import httpx

__all__ = ["HttpClientFactory", "create_http_client"]


class HttpClientFactory(Protocol):
    def __call__(self, **kwargs: Any) -> httpx.AsyncClient: ...


def create_http_client(**kwargs: Any) -> httpx.AsyncClient:
    """Create an httpx AsyncClient with the server's outbound defaults.

    - follow_redirects=True (always enabled)
    - Default timeout of 30 seconds if not specified

    Any keyword argument accepted by httpx.AsyncClient overrides the defaults.
    The returned client must be used as a context manager so connections are
    released.

    Examples:
        async with create_http_client() as client:
            response = await client.get("http://transport.opendata.ch/v1/connections", params=params)

        # Tests swap the network for an in-process handler
        async with create_http_client(transport=httpx.MockTransport(handler)) as client:
            ...
    """
    default_kwargs: dict[str, Any] = {
        "follow_redirects": True,
        "timeout": httpx.Timeout(30.0),
    }
    default_kwargs.update(kwargs)
    return httpx.AsyncClient(**default_kwargs)
