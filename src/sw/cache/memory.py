"""
In-memory cache storage.

Backs the cache store abstraction with insertion-ordered dicts. This is the
storage the worker runs on outside a browser (tests, CLI runs against the
dev server).
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any

from sw.cache.base import CacheKeyLike, CacheStorage, CacheStore
from sw.exceptions import CacheWriteError
from sw.types import CacheNamespace, RequestKey, Response


def _namespace_name(namespace: CacheNamespace | str) -> str:
    return namespace.name if isinstance(namespace, CacheNamespace) else namespace


class InMemoryCacheStore(CacheStore):
    """Insertion-ordered store of response snapshots."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._entries: OrderedDict[RequestKey, Response] = OrderedDict()

    @property
    def name(self) -> str:
        return self._name

    async def match(self, request: CacheKeyLike) -> Response | None:
        return self._entries.get(RequestKey.of(request))

    async def put(self, request: CacheKeyLike, response: Response) -> None:
        """Store a response.

        Replacing an existing key moves it to the newest position, the same
        as a delete followed by an append.

        Raises:
            CacheWriteError: If the request is not a GET.
        """
        key = RequestKey.of(request)
        if key.method != "GET":
            raise CacheWriteError(
                "Only GET requests can be cached",
                context={"method": key.method, "url": key.url},
            )
        self._entries.pop(key, None)
        self._entries[key] = response

    async def delete(self, request: CacheKeyLike) -> bool:
        return self._entries.pop(RequestKey.of(request), None) is not None

    async def keys(self) -> list[RequestKey]:
        return list(self._entries)

    def snapshot(self) -> list[dict[str, Any]]:
        """Entries summarized for diagnostics, oldest first."""
        return [
            {"method": key.method, **response.to_dict()}
            for key, response in self._entries.items()
        ]


class InMemoryCacheStorage(CacheStorage):
    """Namespace registry over InMemoryCacheStore instances."""

    def __init__(self) -> None:
        self._stores: dict[str, InMemoryCacheStore] = {}

    async def open(self, namespace: CacheNamespace | str) -> InMemoryCacheStore:
        name = _namespace_name(namespace)
        store = self._stores.get(name)
        if store is None:
            store = InMemoryCacheStore(name)
            self._stores[name] = store
        return store

    async def has(self, namespace: CacheNamespace | str) -> bool:
        return _namespace_name(namespace) in self._stores

    async def list_namespaces(self) -> list[str]:
        return list(self._stores)

    async def delete_namespace(self, namespace: CacheNamespace | str) -> bool:
        return self._stores.pop(_namespace_name(namespace), None) is not None

    def snapshot(self) -> dict[str, list[dict[str, Any]]]:
        """All namespaces and their entries, for diagnostics."""
        return {name: store.snapshot() for name, store in self._stores.items()}
