"""Counters the control plane keeps about watches, replays and pushes."""

from __future__ import annotations

import threading
from collections import defaultdict

from .loader import WatchUpdate
from .types import SnapshotStatus

WATCH_RESTARTS = "service_mesh.controlplane.watch.restarts"
WATCH_UPDATES = "service_mesh.controlplane.watch.updates"
REPLAY_RESOURCES = "service_mesh.controlplane.replay.resources"
PUSH_DECISIONS = "service_mesh.controlplane.push.decisions"

_Attributes = tuple[tuple[str, str], ...]

_STATUS_LABELS = {
    SnapshotStatus.STALE: "stale",
    SnapshotStatus.DEGRADED: "degraded",
    SnapshotStatus.CURRENT: "current",
}

_REASON_CLASS_PREFIX = "class="


def snapshot_status_label(status: SnapshotStatus) -> str:
    """Lower-case label of a snapshot status; anything unknown is "unspecified"."""
    return _STATUS_LABELS.get(status, "unspecified")


def snapshot_reason_class(reason: str) -> str:
    """Extract the class from a reason of the form "class=<name> ..."; empty otherwise."""
    trimmed = reason.strip()
    if not trimmed.startswith(_REASON_CLASS_PREFIX):
        return ""
    remainder = trimmed[len(_REASON_CLASS_PREFIX):]
    head, _, _ = remainder.partition(" ")
    return head


class Emitter:
    """In-memory counters keyed by metric name and attribute set."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, dict[_Attributes, int]] = defaultdict(
            lambda: defaultdict(int)
        )

    def _add(self, name: str, amount: int, **attributes: str) -> None:
        key = tuple(sorted(attributes.items()))
        with self._lock:
            self._counters[name][key] += amount

    def record_watch_restart(
        self, provider: str, service: str, namespace: str, env: str
    ) -> None:
        """Count one restart of a source watch."""
        self._add(
            WATCH_RESTARTS,
            1,
            provider=provider,
            service=service,
            namespace=namespace,
            env=env,
        )

    def record_watch_update(self, update: WatchUpdate) -> None:
        """Count one update that a watch applied to the store."""
        status = "deleted"
        reason_class = ""
        if update.snapshot is not None:
            status = snapshot_status_label(update.snapshot.status)
            reason_class = snapshot_reason_class(update.snapshot.status_reason)
        self._add(
            WATCH_UPDATES,
            1,
            provider=update.provider,
            service=update.target.service,
            namespace=update.target.namespace,
            env=update.target.env,
            status=status,
            reason_class=reason_class,
        )

    def record_replay_resource(
        self,
        phase: str,
        dataplane_id: str,
        namespace: str,
        env: str,
        resource_kind: str,
        match_kind: str,
        count: int,
    ) -> None:
        """Count resources replayed to a dataplane; non-positive counts are ignored."""
        if count <= 0:
            return
        self._add(
            REPLAY_RESOURCES,
            count,
            phase=phase,
            dataplane_id=dataplane_id,
            namespace=namespace,
            env=env,
            resource_kind=resource_kind,
            match_kind=match_kind,
        )

    def record_push_decision(
        self,
        response_kind: str,
        service: str,
        namespace: str,
        env: str,
        decision: str,
        subscription_match: str,
        identity_match: str,
        count: int,
    ) -> None:
        """Count push decisions for a response; non-positive counts are ignored."""
        if count <= 0:
            return
        self._add(
            PUSH_DECISIONS,
            count,
            response_kind=response_kind,
            service=service,
            namespace=namespace,
            env=env,
            decision=decision,
            subscription_match=subscription_match,
            identity_match=identity_match,
        )

    def count(self, name: str, **kwargs: str) -> int:
        """Total of a metric over every attribute set that matches the given attributes."""
        with self._lock:
            series = dict(self._counters.get(name, {}))
        total = 0
        for key, value in series.items():
            attributes = dict(key)
            if all(attributes.get(k) == v for k, v in kwargs.items()):
                total += value
        return total