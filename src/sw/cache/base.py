"""
Base classes for caching.

A CacheStorage holds any number of named CacheStores (namespaces). Each store
maps a request identity (method + URL) to an immutable response snapshot and
remembers insertion order, which is what trimming evicts by.

Neither layer does any locking. Every write is a whole-entry replace, so
concurrent writers to one key race on which value wins but never corrupt it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from sw.types import CacheNamespace, Request, RequestKey, Response

CacheKeyLike = Request | RequestKey | str


class CacheStore(ABC):
    """A single namespace of cached responses."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Namespace name of this store."""
        ...

    @abstractmethod
    async def match(self, request: CacheKeyLike) -> Response | None:
        """Get the cached response for a request, if any."""
        ...

    @abstractmethod
    async def put(self, request: CacheKeyLike, response: Response) -> None:
        """Store a response, replacing any existing entry for the request."""
        ...

    @abstractmethod
    async def delete(self, request: CacheKeyLike) -> bool:
        """Delete the entry for a request. Returns True if one existed."""
        ...

    @abstractmethod
    async def keys(self) -> list[RequestKey]:
        """All request keys, oldest first."""
        ...

    async def count(self) -> int:
        """Number of entries in the store."""
        return len(await self.keys())


class CacheStorage(ABC):
    """The set of namespaces owned by one worker origin."""

    @abstractmethod
    async def open(self, namespace: CacheNamespace | str) -> CacheStore:
        """Open a namespace, creating it if absent."""
        ...

    @abstractmethod
    async def has(self, namespace: CacheNamespace | str) -> bool:
        """Check whether a namespace exists."""
        ...

    @abstractmethod
    async def list_namespaces(self) -> list[str]:
        """Names of all existing namespaces, in creation order."""
        ...

    @abstractmethod
    async def delete_namespace(self, namespace: CacheNamespace | str) -> bool:
        """Delete a namespace and all its entries. Returns True if it existed."""
        ...

    async def match(
        self,
        request: CacheKeyLike,
        namespaces: Iterable[CacheNamespace | str],
    ) -> Response | None:
        """Search the given namespaces in order and return the first hit.

        Namespaces that do not exist are skipped, never created.
        """
        for namespace in namespaces:
            if not await self.has(namespace):
                continue
            store = await self.open(namespace)
            response = await store.match(request)
            if response is not None:
                return response
        return None
