"""Bridges discovery sources into the snapshot store."""

from __future__ import annotations

import enum
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from .store import SnapshotStore
from .types import ServiceRef, ServiceSnapshot, SourceSnapshot


class WatchEventKind(enum.Enum):
    """What a watch event reports."""

    UPSERT = "upsert"
    DELETE = "delete"


@dataclass
class WatchEvent:
    """A change reported by a watching source."""

    kind: WatchEventKind
    target: ServiceRef
    snapshot: SourceSnapshot | None = None


@runtime_checkable
class Provider(Protocol):
    """A discovery source that resolves targets to snapshots."""

    def name(self) -> str: ...

    async def resolve(self, target: ServiceRef) -> SourceSnapshot: ...


@runtime_checkable
class WatchCapable(Protocol):
    """A source that can stream changes of one target.

    ``watch`` is awaited to start the watch and returns an async iterator of
    events; the iterator ends when the source closes the stream.
    """

    async def watch(self, target: ServiceRef) -> AsyncIterator[WatchEvent]: ...


@dataclass
class WatchUpdate:
    """The outcome of applying one watch event to the store."""

    target: ServiceRef = field(default_factory=ServiceRef)
    provider: str = ""
    snapshot: ServiceSnapshot | None = None
    deleted: bool = False
    changed: bool = False


class Loader:
    """Pulls snapshots from a provider into a SnapshotStore."""

    def __init__(self, store: SnapshotStore | None, provider: Provider | None) -> None:
        self._store = store
        self._provider = provider

    async def refresh(self, target: ServiceRef) -> tuple[ServiceSnapshot | None, bool]:
        """Resolve one target and store it; return the stored snapshot and whether it changed."""
        if self._store is None or self._provider is None:
            return None, False
        resolved = await self._provider.resolve(target)
        return self._store.put_source_snapshot(resolved)

    async def refresh_many(self, targets: Iterable[ServiceRef]) -> list[ServiceSnapshot]:
        """Refresh targets in order and return the snapshots that changed."""
        changed = []
        for target in targets:
            snapshot, updated = await self.refresh(target)
            if updated and snapshot is not None:
                changed.append(snapshot)
        return changed

    async def watch(self, target: ServiceRef) -> AsyncIterator[WatchUpdate] | None:
        """Start watching a target; None when the provider cannot watch.

        The returned iterator yields only updates that changed the store.
        """
        if not isinstance(self._provider, WatchCapable):
            return None
        stream = await self._provider.watch(target)
        return self._bridge(stream)

    async def _bridge(self, stream: AsyncIterator[WatchEvent]) -> AsyncIterator[WatchUpdate]:
        try:
            async for event in stream:
                update = self._apply_watch_event(event)
                if update.changed:
                    yield update
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

    def _apply_watch_event(self, event: WatchEvent) -> WatchUpdate:
        if self._store is None:
            return WatchUpdate()
        if event.kind is WatchEventKind.DELETE:
            deleted = self._store.delete_service_snapshot(event.target)
            return WatchUpdate(
                target=event.target,
                provider=self.provider_name(),
                deleted=deleted,
                changed=deleted,
            )
        if event.kind is WatchEventKind.UPSERT and event.snapshot is not None:
            snapshot, changed = self._store.put_source_snapshot(event.snapshot)
            return WatchUpdate(
                target=event.snapshot.service,
                provider=self.provider_name(),
                snapshot=snapshot,
                changed=changed,
            )
        return WatchUpdate()

    def provider_name(self) -> str:
        """Name of the provider, or an empty string when there is none."""
        if self._provider is None:
            return ""
        return self._provider.name()