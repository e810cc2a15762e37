"""Tests for the cache-aside responder."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from aitap.application.cache.response_cache import ResponseCache
from aitap.application.responder import CachedResponder


class TestCachedResponder:
    @pytest.mark.anyio
    async def test_miss_then_hit(self, response_cache: ResponseCache) -> None:
        generate = AsyncMock(return_value="Paris")
        responder = CachedResponder(response_cache, generate)

        assert await responder.respond("Capital of France?", "en") == "Paris"
        assert await responder.respond("capital of france?  ", "en") == "Paris"

        generate.assert_awaited_once_with("Capital of France?", "en")
        assert response_cache.get_cache_stats()["total_hits"] == 2

    @pytest.mark.anyio
    async def test_sync_generator(self, response_cache: ResponseCache) -> None:
        generate = MagicMock(return_value="Berlin")
        responder = CachedResponder(response_cache, generate)

        assert await responder.respond("Capital of Germany?", "en") == "Berlin"
        assert await responder.respond("Capital of Germany?", "en") == "Berlin"
        generate.assert_called_once()

    @pytest.mark.anyio
    async def test_language_is_part_of_lookup(
        self, response_cache: ResponseCache
    ) -> None:
        generate = AsyncMock(side_effect=["Hello", "Привет"])
        responder = CachedResponder(response_cache, generate)

        assert await responder.respond("hi", "en") == "Hello"
        assert await responder.respond("hi", "ru") == "Привет"
        assert generate.await_count == 2

    @pytest.mark.anyio
    async def test_generation_errors_propagate(
        self, response_cache: ResponseCache
    ) -> None:
        generate = AsyncMock(side_effect=RuntimeError("upstream down"))
        responder = CachedResponder(response_cache, generate)

        with pytest.raises(RuntimeError, match="upstream down"):
            await responder.respond("q", "en")
        assert len(response_cache) == 0

    @pytest.mark.anyio
    async def test_empty_response_not_cached(
        self, response_cache: ResponseCache
    ) -> None:
        generate = AsyncMock(return_value="")
        responder = CachedResponder(response_cache, generate)

        assert await responder.respond("q", "en") == ""
        assert len(response_cache) == 0
        assert generate.await_count == 1

    @pytest.mark.anyio
    async def test_unpaired_surrogate_message(
        self, response_cache: ResponseCache
    ) -> None:
        generate = AsyncMock(return_value="ok")
        responder = CachedResponder(response_cache, generate)

        assert await responder.respond("broken \udc00", "en") == "ok"
        assert await responder.respond("broken \udc00", "en") == "ok"
        generate.assert_awaited_once()
