"""Periodic persistence of the response cache for async hosts."""

import threading
from types import TracebackType
from typing import Callable, Optional, Type

import anyio
from anyio import to_thread
from anyio.abc import TaskGroup, TaskStatus

from .response_cache import ResponseCache
from ...config import Settings
from ...constants import DEFAULT_AUTOSAVE_INTERVAL_SECONDS, DEFAULT_STORAGE_TIMEOUT_SECONDS
from ...logging import debug, info, warning, LogRecord, LogEvent


class CacheAutoSaver:
    """
    Loads the cache on start, saves it every ``interval_seconds`` and once
    more on shutdown.

    Persistence runs in a worker thread bounded by ``timeout_seconds``; a
    call that overruns is abandoned and logged. Saves are serialized, so two
    persistence operations never overlap.

    Use it as an async context manager, or start ``run`` in a task group.
    """

    def __init__(
        self,
        cache: ResponseCache,
        interval_seconds: float = DEFAULT_AUTOSAVE_INTERVAL_SECONDS,
        timeout_seconds: float = DEFAULT_STORAGE_TIMEOUT_SECONDS,
    ):
        self.cache = cache
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds
        self._io_lock = anyio.Lock()
        self._thread_lock = threading.Lock()
        self._task_group: Optional[TaskGroup] = None
        self.save_count = 0

    @classmethod
    def from_settings(cls, cache: ResponseCache, settings: Settings) -> "CacheAutoSaver":
        return cls(
            cache,
            interval_seconds=settings.cache_autosave_interval_seconds,
            timeout_seconds=settings.cache_storage_timeout_seconds,
        )

    async def _run_io(self, operation: Callable[[], bool], name: str) -> bool:
        async with self._io_lock:
            try:
                with anyio.fail_after(self.timeout_seconds):
                    return await to_thread.run_sync(
                        self._run_exclusive, operation, name, abandon_on_cancel=True
                    )
            except TimeoutError:
                warning(
                    LogRecord(
                        event=LogEvent.AUTOSAVE_EVENT.value,
                        message=f"Cache {name} timed out",
                        data={"timeout_seconds": self.timeout_seconds},
                    )
                )
                return False

    def _run_exclusive(self, operation: Callable[[], bool], name: str) -> bool:
        # A timed-out call keeps running in its abandoned thread and holds the lock.
        if not self._thread_lock.acquire(blocking=False):
            warning(
                LogRecord(
                    event=LogEvent.AUTOSAVE_EVENT.value,
                    message=f"Previous cache I/O still running, skipping {name}",
                    data={},
                )
            )
            return False
        try:
            return operation()
        finally:
            self._thread_lock.release()

    async def load(self) -> bool:
        return await self._run_io(self.cache.load_from_storage, "load")

    async def save(self) -> bool:
        saved = await self._run_io(self.cache.save_to_storage, "save")
        if saved:
            self.save_count += 1
        return saved

    async def run(self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        """Load, then save periodically until cancelled; save once on exit."""
        await self.load()
        info(
            LogRecord(
                event=LogEvent.AUTOSAVE_EVENT.value,
                message="Cache auto-save started",
                data={"interval_seconds": self.interval_seconds},
            )
        )
        task_status.started()
        try:
            while True:
                await anyio.sleep(self.interval_seconds)
                await self.save()
        finally:
            with anyio.CancelScope(shield=True):
                await self.save()
            debug(
                LogRecord(
                    event=LogEvent.AUTOSAVE_EVENT.value,
                    message="Cache auto-save stopped",
                    data={"save_count": self.save_count},
                )
            )

    async def __aenter__(self) -> "CacheAutoSaver":
        self._task_group = anyio.create_task_group()
        await self._task_group.__aenter__()
        try:
            await self._task_group.start(self.run)
        except BaseException as e:
            await self.__aexit__(type(e), e, e.__traceback__)
            raise
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> Optional[bool]:
        task_group, self._task_group = self._task_group, None
        if task_group is None:
            return None
        task_group.cancel_scope.cancel()
        return await task_group.__aexit__(exc_type, exc, tb)
