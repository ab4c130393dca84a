"""
Tests for the cache strategies.
"""

from __future__ import annotations

import asyncio

import pytest

from fakes import FakeFetcher, page, url
from sw.context import RuntimeContext
from sw.exceptions import CacheMiss, NetworkError
from sw.strategies import CacheStrategies
from sw.types import Request, RouteKind


@pytest.fixture
def strategies(ctx: RuntimeContext) -> CacheStrategies:
    return CacheStrategies(ctx)


async def cached(ctx: RuntimeContext, namespace: str, path: str) -> bytes | None:
    store = await ctx.storage.open(namespace)
    hit = await store.match(url(path))
    return hit.body if hit is not None else None


class TestNetworkFirst:
    """network_first strategy."""

    @pytest.mark.asyncio
    async def test_online_returns_and_caches(
        self, ctx: RuntimeContext, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        fetcher.serve("/story.html", "our story")

        response = await strategies.network_first(Request.navigate(url("/story.html")))

        assert response.body == b"our story"
        assert await cached(ctx, "wedding-v2-dynamic", "/story.html") == b"our story"

    @pytest.mark.asyncio
    async def test_online_prefers_network_over_cache(
        self, ctx: RuntimeContext, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        store = await ctx.storage.open("wedding-v2-dynamic")
        await store.put(url("/story.html"), page("/story.html", "old"))
        fetcher.serve("/story.html", "new")

        response = await strategies.network_first(Request.navigate(url("/story.html")))

        assert response.body == b"new"
        assert await cached(ctx, "wedding-v2-dynamic", "/story.html") == b"new"

    @pytest.mark.asyncio
    async def test_non_ok_returned_but_not_cached(
        self, ctx: RuntimeContext, strategies: CacheStrategies
    ) -> None:
        response = await strategies.network_first(Request.navigate(url("/missing.html")))

        assert response.status == 404
        assert await cached(ctx, "wedding-v2-dynamic", "/missing.html") is None

    @pytest.mark.asyncio
    async def test_offline_falls_back_to_cache(
        self, ctx: RuntimeContext, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        store = await ctx.storage.open("wedding-v2-static")
        await store.put(url("/index.html"), page("/index.html", "shell"))
        fetcher.offline = True

        response = await strategies.network_first(Request.navigate(url("/index.html")))

        assert response.body == b"shell"

    @pytest.mark.asyncio
    async def test_offline_without_cache_raises(
        self, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        fetcher.offline = True

        with pytest.raises(NetworkError):
            await strategies.network_first(Request.navigate(url("/story.html")))


class TestCacheFirst:
    """cache_first strategy."""

    @pytest.mark.asyncio
    async def test_cached_entry_returned_without_network(
        self, ctx: RuntimeContext, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        entry = page("/styles.css", "body{}")
        store = await ctx.storage.open("wedding-v2-dynamic")
        await store.put(url("/styles.css"), entry)
        fetcher.offline = True

        response = await strategies.cache_first(Request(url=url("/styles.css")))

        assert response == entry
        assert fetcher.fetched("/styles.css") == 0

    @pytest.mark.asyncio
    async def test_miss_fetches_and_caches(
        self, ctx: RuntimeContext, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        fetcher.serve("/app.js", "console.log(1)")

        first = await strategies.cache_first(Request(url=url("/app.js")))
        second = await strategies.cache_first(Request(url=url("/app.js")))

        assert first == second
        assert fetcher.fetched("/app.js") == 1
        assert await cached(ctx, "wedding-v2-dynamic", "/app.js") == b"console.log(1)"

    @pytest.mark.asyncio
    async def test_miss_and_offline_raises(
        self, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        fetcher.fail("/app.js")

        with pytest.raises(NetworkError):
            await strategies.cache_first(Request(url=url("/app.js")))

    @pytest.mark.asyncio
    async def test_other_version_is_not_searched(
        self, ctx: RuntimeContext, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        old = await ctx.storage.open("wedding-v1-dynamic")
        await old.put(url("/app.js"), page("/app.js", "v1"))
        fetcher.offline = True

        with pytest.raises(NetworkError):
            await strategies.cache_first(Request(url=url("/app.js")))


class TestImageCacheFirst:
    """image_cache_first strategy."""

    @pytest.mark.asyncio
    async def test_writes_only_to_image_namespace(
        self, ctx: RuntimeContext, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        fetcher.serve("/photos/1.webp", "webp-bytes")

        await strategies.image_cache_first(Request.image(url("/photos/1.webp")))

        assert await cached(ctx, "wedding-v2-images", "/photos/1.webp") == b"webp-bytes"
        assert not await ctx.storage.has("wedding-v2-dynamic")

    @pytest.mark.asyncio
    async def test_cached_image_returned_offline(
        self, ctx: RuntimeContext, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        entry = page("/photos/1.webp", "webp-bytes")
        store = await ctx.storage.open("wedding-v2-images")
        await store.put(url("/photos/1.webp"), entry)
        fetcher.offline = True

        response = await strategies.image_cache_first(Request.image(url("/photos/1.webp")))

        assert response == entry

    @pytest.mark.asyncio
    async def test_ignores_entries_outside_image_namespace(
        self, ctx: RuntimeContext, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        store = await ctx.storage.open("wedding-v2-dynamic")
        await store.put(url("/photos/1.webp"), page("/photos/1.webp", "stray"))
        fetcher.offline = True

        with pytest.raises(NetworkError):
            await strategies.image_cache_first(Request.image(url("/photos/1.webp")))

    @pytest.mark.asyncio
    async def test_offline_miss_leaves_no_empty_namespace(
        self, ctx: RuntimeContext, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        fetcher.offline = True

        with pytest.raises(NetworkError):
            await strategies.image_cache_first(Request.image(url("/photos/2.webp")))

        assert await ctx.storage.list_namespaces() == []


class TestStaleWhileRevalidate:
    """stale_while_revalidate strategy."""

    @pytest.mark.asyncio
    async def test_returns_cached_without_waiting_for_network(
        self, ctx: RuntimeContext, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        store = await ctx.storage.open("wedding-v2-static")
        await store.put(url("/config.yaml"), page("/config.yaml", "v1"))
        fetcher.serve("/config.yaml", "v2")
        fetcher.gate = asyncio.Event()  # network never answers until released

        response = await asyncio.wait_for(
            strategies.stale_while_revalidate(Request(url=url("/config.yaml"))),
            timeout=1.0,
        )

        assert response.body == b"v1"
        assert await cached(ctx, "wedding-v2-dynamic", "/config.yaml") is None

        fetcher.gate.set()
        await ctx.tasks.drain()

        assert await cached(ctx, "wedding-v2-dynamic", "/config.yaml") == b"v2"

    @pytest.mark.asyncio
    async def test_next_request_sees_refreshed_copy(
        self, ctx: RuntimeContext, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        store = await ctx.storage.open("wedding-v2-static")
        await store.put(url("/config.yaml"), page("/config.yaml", "v1"))
        fetcher.serve("/config.yaml", "v2")

        first = await strategies.stale_while_revalidate(Request(url=url("/config.yaml")))
        await ctx.tasks.drain()
        second = await strategies.stale_while_revalidate(Request(url=url("/config.yaml")))

        assert first.body == b"v1"
        assert second.body == b"v2"

    @pytest.mark.asyncio
    async def test_background_failure_is_not_surfaced(
        self, ctx: RuntimeContext, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        store = await ctx.storage.open("wedding-v2-dynamic")
        await store.put(url("/config.yaml"), page("/config.yaml", "v1"))
        fetcher.offline = True

        response = await strategies.stale_while_revalidate(Request(url=url("/config.yaml")))
        await ctx.tasks.drain()

        assert response.body == b"v1"
        assert await cached(ctx, "wedding-v2-dynamic", "/config.yaml") == b"v1"

    @pytest.mark.asyncio
    async def test_miss_waits_for_network_and_caches(
        self, ctx: RuntimeContext, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        response = await strategies.stale_while_revalidate(Request(url=url("/config.yaml")))

        assert response.body == b"couple: A & B\n"
        assert await cached(ctx, "wedding-v2-dynamic", "/config.yaml") == b"couple: A & B\n"
        assert len(ctx.tasks) == 0

    @pytest.mark.asyncio
    async def test_miss_and_offline_raises(
        self, strategies: CacheStrategies, fetcher: FakeFetcher
    ) -> None:
        fetcher.offline = True

        with pytest.raises(NetworkError):
            await strategies.stale_while_revalidate(Request(url=url("/config.yaml")))


class TestLookup:
    """Cross-namespace lookup helpers."""

    def test_search_order(self, strategies: CacheStrategies) -> None:
        assert [ns.name for ns in strategies.search_order] == [
            "wedding-v2-dynamic",
            "wedding-v2-static",
            "wedding-v2-images",
        ]

    @pytest.mark.asyncio
    async def test_match_required_raises_cache_miss(self, strategies: CacheStrategies) -> None:
        with pytest.raises(CacheMiss) as exc_info:
            await strategies.match_required(url("/index.html"))
        assert exc_info.value.context["url"] == url("/index.html")

    def test_for_kind(self, strategies: CacheStrategies) -> None:
        assert strategies.for_kind(RouteKind.CACHE_FIRST) == strategies.cache_first
        with pytest.raises(KeyError):
            strategies.for_kind(RouteKind.PASS_THROUGH)
