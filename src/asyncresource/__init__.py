"""asyncresource -- one async ``get`` for local and network-backed data.

A :class:`~asyncresource.resource.LocalResource` holds a value persisted
in a file or key/value entry. A
:class:`~asyncresource.resource.NetworkResource` fetches a url and keeps a
local copy in an owned ``LocalResource``, choosing between memory, cache,
and network on every ``get`` according to a
:class:`~asyncresource.models.CacheStrategy` and a maximum age.

Typical usage::

    from datetime import timedelta

    from asyncresource import CacheStrategy
    from asyncresource.resources import file_resource, http_network_resource, json_parser

    posts = http_network_resource(
        "https://example.com/posts.json",
        cache=file_resource("posts.json", parser=json_parser),
        max_age=timedelta(days=30),
        strategy=CacheStrategy.CACHE_FIRST,
    )
    data = await posts.get()

Modules:
    resource: Resource classes and the freshness decision.
    expiration: The ``has_expired`` predicate.
    storage: File and key/value storage adapters.
    client: The httpx-based fetch primitive.
    resources: Convenience constructors and parsers.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from asyncresource.expiration import has_expired  # noqa: E402
from asyncresource.models import CacheStrategy  # noqa: E402
from asyncresource.resource import AsyncResource, LocalResource, NetworkResource  # noqa: E402

__all__ = [
    "AsyncResource",
    "CacheStrategy",
    "LocalResource",
    "NetworkResource",
    "has_expired",
    "__version__",
]
