"""Cache-aside wrapper around the completion generator."""

import inspect
import time
from typing import Awaitable, Callable, Optional, Union

from .cache import ResponseCache
from ..logging import info, LogRecord, LogEvent

GenerateFn = Callable[[str, str], Union[str, Awaitable[str]]]


class CachedResponder:
    """Serves repeat queries from the cache and only calls ``generate`` on a miss.

    ``generate`` may be a plain function or a coroutine function. Its errors
    propagate unchanged and nothing is cached for a failed call.
    """

    def __init__(self, cache: ResponseCache, generate: GenerateFn):
        self.cache = cache
        self._generate = generate

    async def respond(
        self, message: str, language: str, request_id: Optional[str] = None
    ) -> str:
        cached = self.cache.get_cache(message, language)
        if cached is not None:
            return cached

        start = time.monotonic()
        result = self._generate(message, language)
        if inspect.isawaitable(result):
            result = await result

        self.cache.set_cache(message, language, result)
        info(
            LogRecord(
                event=LogEvent.GENERATION_EVENT.value,
                message="Generated response for cache miss",
                request_id=request_id,
                data={
                    "language": language,
                    "duration_ms": round((time.monotonic() - start) * 1000, 1),
                    "cached": bool(message and result),
                },
            )
        )
        return result
