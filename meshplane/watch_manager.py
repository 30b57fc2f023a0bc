"""Keeps one restarting source watch running per tracked target."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Callable, Iterable
from typing import Any

from .loader import Loader, WatchUpdate
from .telemetry import Emitter
from .types import ServiceRef, target_key

WATCH_RESTART_BACKOFF = 0.2

_log = logging.getLogger(__name__)


class WatchManager:
    """Runs source watches for tracked targets and restarts them when they end.

    ``start`` must be called from a running event loop; targets tracked before
    that are ignored, as are targets tracked after ``close``.
    """

    def __init__(
        self,
        loader: Loader | None,
        telemetry: Emitter | None,
        on_update: Callable[[WatchUpdate], Any] | None,
    ) -> None:
        self._loader = loader
        self._telemetry = telemetry
        self._on_update = on_update
        self._loop: asyncio.AbstractEventLoop | None = None
        self._active: dict[str, asyncio.Task[None]] = {}

    def start(self, targets: Iterable[ServiceRef]) -> None:
        """Begin watching on the running loop and track the given targets."""
        self._loop = asyncio.get_running_loop()
        for target in targets:
            self.track(target)

    def track(self, target: ServiceRef) -> None:
        """Start a watch for the target unless one is already running."""
        if self._loader is None or not target.service.strip():
            return
        if self._loop is None:
            return
        key = target_key(target)
        if key in self._active:
            return
        task = self._loop.create_task(self._run(key, target))
        self._active[key] = task

    async def close(self) -> None:
        """Cancel every running watch and stop accepting new ones."""
        self._loop = None
        tasks = list(self._active.values())
        self._active.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _provider_name(self) -> str:
        return self._loader.provider_name() if self._loader is not None else ""

    async def _open(self, target: ServiceRef) -> AsyncIterator[WatchUpdate] | None:
        try:
            return await self._loader.watch(target)
        except asyncio.CancelledError:
            raise
        except Exception:
            _log.debug("controlplane watch failed to open", exc_info=True)
            return None

    async def _deliver(self, update: WatchUpdate) -> None:
        if self._on_update is None:
            return
        result = self._on_update(update)
        if inspect.isawaitable(result):
            await result

    async def _drain(self, updates: AsyncIterator[WatchUpdate]) -> None:
        try:
            async for update in updates:
                await self._deliver(update)
        finally:
            aclose = getattr(updates, "aclose", None)
            if aclose is not None:
                await aclose()

    async def _run(self, key: str, target: ServiceRef) -> None:
        try:
            updates = await self._open(target)
            while True:
                if updates is None:
                    await asyncio.sleep(WATCH_RESTART_BACKOFF)
                    updates = await self._open(target)
                    if updates is None:
                        continue

                await self._drain(updates)

                provider = self._provider_name()
                if self._telemetry is not None:
                    self._telemetry.record_watch_restart(
                        provider, target.service, target.namespace, target.env
                    )
                _log.warning(
                    "controlplane watch restarting provider=%s service=%s namespace=%s env=%s",
                    provider,
                    target.service,
                    target.namespace,
                    target.env,
                )
                await asyncio.sleep(WATCH_RESTART_BACKOFF)
                updates = await self._open(target)
        finally:
            if self._active.get(key) is asyncio.current_task():
                del self._active[key]