"""HTTP transport for fetching spec documents.

Provides :class:`SpecFetcher`, a thin wrapper around :class:`httpx.AsyncClient`
that performs a single GET, checks the status and decodes the JSON body,
mapping every failure onto the :mod:`rpcspec.exceptions` hierarchy.

Example::

    from rpcspec.client import SpecFetcher

    async with SpecFetcher() as fetcher:
        body = await fetcher.fetch_json("http://localhost:8080/spec.json")
"""

from rpcspec.client.fetcher import SpecFetcher

__all__ = ["SpecFetcher"]
